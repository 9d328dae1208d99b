"""Finances app package.

Booking payments through Stripe, the escrow that holds them until the
service is confirmed, refunds, and the webhook that keeps payment state
in sync with the provider.
"""
