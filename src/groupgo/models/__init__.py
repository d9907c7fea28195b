"""
Pydantic models for GroupGo.
"""

from groupgo.models.base import normalize_email, now_millis
from groupgo.models.invitation import Invitation, InvitationStatus
from groupgo.models.payment import PaymentMethodList, PaymentMethodSummary, SetupIntentResponse
from groupgo.models.profile import UserProfile, UserRecord
from groupgo.models.trip import Trip

__all__ = [
    "Invitation",
    "InvitationStatus",
    "PaymentMethodList",
    "PaymentMethodSummary",
    "SetupIntentResponse",
    "Trip",
    "UserProfile",
    "UserRecord",
    "normalize_email",
    "now_millis",
]
