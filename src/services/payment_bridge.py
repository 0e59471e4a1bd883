"""Payment bridge - Stripe PaymentIntents for accepted offers."""

import os
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

import stripe

from src.models.offer import Offer, OfferStatus
from src.models.user import RequestIdentity
from src.services import offer_lifecycle
from src.services.role_gate import email_matches
from src.utils.errors import (
    AuthorizationError,
    ConflictError,
    PaymentIncompleteError,
    PaymentProviderError,
    ServiceNotConfiguredError,
    ValidationError,
)
from src.utils.logging import get_structured_logger, log_timing, mask_email, mask_sensitive_data

logger = get_structured_logger(__name__)

SUCCEEDED = "succeeded"


def get_stripe_secret_key() -> str:
    """Get Stripe secret key from environment."""
    secret = os.environ.get("STRIPE_SECRET_KEY", "").strip()
    if not secret:
        raise ServiceNotConfiguredError(
            "Payment service is not configured", code="PAYMENT_UNAVAILABLE"
        )
    return secret


def get_publishable_key() -> str:
    key = os.environ.get("STRIPE_PUBLISHABLE_KEY", "").strip()
    if not key:
        raise ServiceNotConfiguredError(
            "Payment service is not configured", code="PAYMENT_UNAVAILABLE"
        )
    return key


def get_currency() -> str:
    return os.environ.get("PAYMENT_CURRENCY", "usd").strip().lower() or "usd"


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount (dollars) to integer minor units (cents), rounding half up."""
    if isinstance(amount, bool) or amount is None:
        raise ValidationError("Amount is required and must be a positive number")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount is required and must be a positive number")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount is required and must be a positive number")
    cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise ValidationError("Amount is required and must be a positive number")
    return cents


def _provider_error(e: "stripe.StripeError") -> PaymentProviderError:
    return PaymentProviderError(
        e.user_message or str(e) or "Payment provider error",
        code=getattr(e, "code", None),
        status_code=getattr(e, "http_status", None),
    )


def payment_config() -> dict:
    """Client-side configuration for the payment form."""
    return {"publishableKey": get_publishable_key(), "currency": get_currency()}


async def create_payment_intent(buyer: RequestIdentity, offer_id: Optional[str], amount: Any) -> dict:
    """
    Create a PaymentIntent for an accepted offer owned by buyer.

    Returns the client secret the browser uses to confirm the payment.
    """
    if not offer_id:
        raise ValidationError("Offer ID is required")
    amount_minor = to_minor_units(amount)

    offer = await offer_lifecycle.get_offer(offer_id)
    if not email_matches(buyer, offer.buyer_email):
        raise AuthorizationError("Unauthorized to pay for this offer")
    if offer.status != OfferStatus.ACCEPTED:
        raise ConflictError("Only accepted offers can be paid for")

    api_key = get_stripe_secret_key()
    try:
        with log_timing("stripe.payment_intent.create", logger=logger, offer_id=offer.offer_id):
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                amount=amount_minor,
                currency=get_currency(),
                metadata={
                    "offer_id": offer.offer_id,
                    "buyer_uid": buyer.uid,
                    "buyer_email": offer.buyer_email,
                    "property_title": offer.property_title,
                },
                automatic_payment_methods={"enabled": True},
            )
    except stripe.StripeError as e:
        logger.error("Error creating payment intent", offer_id=offer.offer_id, error=mask_sensitive_data(str(e)))
        raise _provider_error(e)

    logger.info(
        "Payment intent created",
        offer_id=offer.offer_id,
        payment_intent_id=intent.id,
        amount_minor=amount_minor,
        buyer=mask_email(buyer.email),
    )
    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


async def confirm_payment(buyer: RequestIdentity, payment_intent_id: Optional[str], offer_id: Optional[str]) -> Offer:
    """
    Confirm a PaymentIntent with Stripe and complete the offer.

    A second confirmation for the same offer fails in the offer's status guard.
    """
    if not payment_intent_id or not offer_id:
        raise ValidationError("Payment Intent ID and Offer ID are required")

    api_key = get_stripe_secret_key()
    try:
        with log_timing("stripe.payment_intent.retrieve", logger=logger, offer_id=offer_id):
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=api_key)
    except stripe.StripeError as e:
        logger.error("Error retrieving payment intent", offer_id=offer_id, error=mask_sensitive_data(str(e)))
        raise _provider_error(e)

    if intent.status != SUCCEEDED:
        raise PaymentIncompleteError("Payment not completed")

    metadata = getattr(intent, "metadata", None)
    intent_offer_id = metadata["offer_id"] if metadata and "offer_id" in metadata else None
    if intent_offer_id and intent_offer_id != offer_id:
        raise ValidationError("Payment does not belong to this offer")

    offer = await offer_lifecycle.mark_bought(buyer, offer_id, payment_intent_id)
    logger.info("Payment confirmed", offer_id=offer.offer_id, payment_intent_id=payment_intent_id)
    return offer
