"""Payouts app package.

Stripe Connect accounts for freelancers and the payout records created
when escrow is released, paid out per transaction, weekly or bi-weekly.
"""
