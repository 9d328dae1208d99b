"""Stripe Connect calls used by payouts.

Emulated offline when ``STRIPE_SECRET_KEY`` is empty, like the payment
gateway: emulated accounts finish onboarding straight away.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import stripe  # type: ignore
from django.conf import settings  # type: ignore

from apps.finances.gateway import PaymentGatewayError, configure_client, emulated_id, is_emulated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectAccountState:
    account_status: str
    onboarding_completed: bool
    payouts_enabled: bool
    details_submitted: bool
    requirements_due: list[str] = field(default_factory=list)


def create_connected_account(email: str) -> str:
    if is_emulated():
        account_id = emulated_id("acct")
        logger.warning(f"Stripe is not configured; emulating connected account {account_id}")
        return account_id

    configure_client()
    try:
        account = stripe.Account.create(
            type="express",
            email=email,
            country=settings.STRIPE_CONNECT_COUNTRY,
            capabilities={"transfers": {"requested": True}},
            settings={"payouts": {"schedule": {"interval": "manual"}}},
        )
    except stripe.StripeError as exc:
        logger.error(f"Connected account for {email} failed: {exc}", exc_info=True)
        raise PaymentGatewayError("The payout account could not be created.") from exc
    return account.id


def create_account_link(account_id: str, refresh_url: str, return_url: str) -> str:
    if is_emulated():
        return f"{return_url}?emulated_account={account_id}"

    configure_client()
    try:
        link = stripe.AccountLink.create(
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type="account_onboarding",
        )
    except stripe.StripeError as exc:
        logger.error(f"Onboarding link for {account_id} failed: {exc}", exc_info=True)
        raise PaymentGatewayError("The onboarding link could not be created.") from exc
    return link.url


def retrieve_account_state(account_id: str) -> ConnectAccountState:
    if is_emulated():
        return ConnectAccountState("active", True, True, True)

    configure_client()
    try:
        account = stripe.Account.retrieve(account_id)
    except stripe.StripeError as exc:
        logger.error(f"Retrieving account {account_id} failed: {exc}", exc_info=True)
        raise PaymentGatewayError("The payout account could not be retrieved.") from exc

    requirements = account.get("requirements") or {}
    currently_due = list(requirements.get("currently_due") or [])
    if account.get("charges_enabled") and account.get("payouts_enabled"):
        account_status = "active"
    elif currently_due:
        account_status = "restricted"
    else:
        account_status = "pending"
    details_submitted = bool(account.get("details_submitted"))
    return ConnectAccountState(
        account_status=account_status,
        onboarding_completed=details_submitted,
        payouts_enabled=bool(account.get("payouts_enabled")),
        details_submitted=details_submitted,
        requirements_due=currently_due,
    )


def create_transfer(account_id: str, amount_pence: int, *, payout_id: int) -> str:
    if is_emulated():
        transfer_id = emulated_id("tr")
        logger.warning(f"Stripe is not configured; emulating transfer {transfer_id} of {amount_pence}p")
        return transfer_id

    configure_client()
    try:
        transfer = stripe.Transfer.create(
            amount=amount_pence,
            currency=settings.MARKETPLACE.get("CURRENCY", "GBP").lower(),
            destination=account_id,
            metadata={"payout_id": str(payout_id)},
        )
    except stripe.StripeError as exc:
        logger.error(f"Transfer for payout {payout_id} failed: {exc}", exc_info=True)
        raise PaymentGatewayError(str(exc)) from exc
    return transfer.id
