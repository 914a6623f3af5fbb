import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe

from core.errors import Upstream

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripePaymentGateway:
    def __init__(self, currency: str = "usd"):
        self.currency = currency

    def create_intent(self, amount_minor: int, metadata: dict) -> str:
        """Returns the intent's client secret. Provider errors are not retried."""
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=self.currency,
                automatic_payment_methods={"enabled": True},
                metadata=metadata
            )
            return intent.client_secret
        except stripe.StripeError as e:
            logger.error(f"Error creating Stripe intent: {e}")
            raise Upstream(f"Payment provider error: {e.user_message or 'intent creation failed'}") from e
