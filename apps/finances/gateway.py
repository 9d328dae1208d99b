"""Stripe gateway for booking payments.

Without ``STRIPE_SECRET_KEY`` every call is emulated offline: ids look
like ``pi_emulated_<hex>`` and nothing leaves the process.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from typing import Any

import stripe  # type: ignore
from django.conf import settings  # type: ignore

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The payment provider rejected a call or could not be reached."""


class WebhookVerificationError(PaymentGatewayError):
    """The webhook payload or its signature is invalid."""


@dataclass(frozen=True)
class PaymentIntentResult:
    payment_intent_id: str
    client_secret: str


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str
    amount_pence: int


def is_emulated() -> bool:
    return not settings.STRIPE_SECRET_KEY


def emulated_id(prefix: str) -> str:
    return f"{prefix}_emulated_{secrets.token_hex(12)}"


def configure_client() -> None:
    stripe.api_key = settings.STRIPE_SECRET_KEY


def create_payment_intent(
    *,
    booking_id: int,
    amount_pence: int,
    platform_fee_pence: int,
    metadata: dict[str, Any] | None = None,
) -> PaymentIntentResult:
    currency = settings.MARKETPLACE.get("CURRENCY", "GBP").lower()
    intent_metadata = {
        "booking_id": str(booking_id),
        "platform_fee_pence": str(platform_fee_pence),
    }
    intent_metadata.update({key: str(value) for key, value in (metadata or {}).items()})

    if is_emulated():
        intent_id = emulated_id("pi")
        logger.warning(f"Stripe is not configured; emulating payment intent {intent_id} for booking {booking_id}")
        return PaymentIntentResult(intent_id, f"{intent_id}_secret_{secrets.token_hex(8)}")

    configure_client()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_pence,
            currency=currency,
            capture_method="automatic",
            payment_method_types=["card"],
            metadata=intent_metadata,
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe payment intent for booking {booking_id} failed: {exc}", exc_info=True)
        raise PaymentGatewayError("The payment could not be initialised.") from exc

    logger.info(f"Payment intent {intent.id} created for booking {booking_id}")
    return PaymentIntentResult(intent.id, intent.client_secret)


def create_refund(
    payment_intent_id: str,
    amount_pence: int,
    *,
    reason: str = "requested_by_customer",
    metadata: dict[str, Any] | None = None,
) -> RefundResult:
    if is_emulated():
        refund_id = emulated_id("re")
        logger.warning(f"Stripe is not configured; emulating refund {refund_id} of {amount_pence}p")
        return RefundResult(refund_id, "succeeded", amount_pence)

    configure_client()
    try:
        refund = stripe.Refund.create(
            payment_intent=payment_intent_id,
            amount=amount_pence,
            reason=reason,
            metadata={key: str(value) for key, value in (metadata or {}).items()},
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe refund for {payment_intent_id} failed: {exc}", exc_info=True)
        raise PaymentGatewayError("The refund could not be processed.") from exc

    logger.info(f"Refund {refund.id} of {refund.amount}p created for {payment_intent_id}")
    return RefundResult(refund.id, refund.status, refund.amount)


def parse_webhook(payload: bytes, signature: str | None) -> dict[str, Any]:
    """Verify the ``Stripe-Signature`` header and decode the event."""
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        raise WebhookVerificationError("Webhook secret is not configured.")
    if not signature:
        raise WebhookVerificationError("Missing Stripe-Signature header.")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise WebhookVerificationError("Invalid webhook payload.") from exc
    try:
        stripe.WebhookSignature.verify_header(
            body,
            signature,
            secret,
            settings.STRIPE_WEBHOOK_TOLERANCE,
        )
    except stripe.SignatureVerificationError as exc:
        raise WebhookVerificationError("Invalid webhook signature.") from exc

    try:
        event = json.loads(body)
    except ValueError as exc:
        raise WebhookVerificationError("Invalid webhook payload.") from exc
    if not isinstance(event, dict) or "id" not in event or "type" not in event:
        raise WebhookVerificationError("Invalid webhook payload.")
    return event
