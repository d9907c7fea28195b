import pytest
from pydantic import ValidationError

from groupgo.models import (
    Invitation,
    InvitationStatus,
    PaymentMethodList,
    PaymentMethodSummary,
    SetupIntentResponse,
    Trip,
    UserProfile,
    UserRecord,
    normalize_email,
)
from groupgo.models.trip import align_participants, head_count

# --- Trip ---


def test_trip_document_uses_camel_case():
    trip = Trip(id="t1", name="Lisbon", created_by="u1", participants=["u1"], participants_emails=["a@b.c"])
    doc = trip.to_document()
    assert doc["createdBy"] == "u1"
    assert doc["participantsEmails"] == ["a@b.c"]
    assert doc["numberOfPeople"] == ""
    assert doc["startDate"] == "TBD"
    assert "created_by" not in doc


def test_trip_parses_legacy_document_without_emails():
    trip = Trip.model_validate({"id": "t1", "name": "Old", "createdBy": "u1", "participants": ["u1", "u2"]})
    assert trip.participants_emails == []
    assert trip.created_by_email == ""


def test_align_participants_pads_and_trims():
    assert align_participants(["a", "b"], ["a@x"]) == (["a", "b"], ["a@x", ""])
    assert align_participants(["a"], ["a@x", "stray@x"]) == (["a"], ["a@x"])


def test_head_count_never_below_one():
    assert head_count([]) == "1"
    assert head_count(["a", "b", "c"]) == "3"


# --- Invitation ---


def test_invitation_defaults_to_pending():
    invitation = Invitation(id="i1", trip_id="t1", invited_email="x@y.z")
    assert invitation.status is InvitationStatus.PENDING
    assert invitation.accepted_at is None
    assert invitation.to_document()["status"] == "pending"


def test_invitation_rejects_unknown_status():
    with pytest.raises(ValidationError):
        Invitation.model_validate({"id": "i1", "status": "maybe"})


def test_terminal_statuses():
    assert not InvitationStatus.PENDING.is_terminal
    assert InvitationStatus.ACCEPTED.is_terminal
    assert InvitationStatus.DECLINED.is_terminal


def test_normalize_email():
    assert normalize_email("  Friend@Example.COM ") == "friend@example.com"
    assert normalize_email(None) == ""


# --- Profiles ---


def test_profile_document_round_trip_fields():
    profile = UserProfile(uid="u1", first_name="Ada", home_airport="LIS", passport_id="P123")
    doc = profile.to_document()
    assert doc["homeAirport"] == "LIS"
    assert doc["passportId"] == "P123"
    assert UserProfile.model_validate(doc) == profile


def test_user_record_label_fallbacks():
    assert UserRecord(uid="u1", email="a@b.c", display_name="Ada L").label == "Ada L"
    assert UserRecord(uid="u1", email="a@b.c", display_name="  ").label == "a@b.c"
    assert UserRecord(uid="u1").label == "u1"


# --- Payments ---


def test_payment_method_accepts_snake_case_expiry():
    method = PaymentMethodSummary.model_validate(
        {"id": "pm_1", "brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030}
    )
    assert method.exp_month == 12
    assert method.exp_year == 2030
    assert method.is_default is False


def test_payment_method_accepts_camel_case_expiry():
    method = PaymentMethodSummary.model_validate({"id": "pm_1", "expMonth": 1, "expYear": 2031, "isDefault": True})
    assert method.exp_month == 1
    assert method.is_default is True


def test_payment_method_list_defaults():
    listing = PaymentMethodList.model_validate({"customerId": "cus_1"})
    assert listing.payment_methods == []
    assert listing.default_payment_method is None


def test_setup_intent_requires_all_fields():
    with pytest.raises(ValidationError):
        SetupIntentResponse.model_validate({"customerId": "cus_1"})
