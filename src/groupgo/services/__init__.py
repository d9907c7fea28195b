"""
Integrations with external services.

- payment_relay.py: card setup and management through the payment backend
"""

from groupgo.services.payment_relay import PaymentRelay

__all__ = ["PaymentRelay"]
