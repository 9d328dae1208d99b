"""Disputes app package.

Clients raise a dispute over a booking shortly after the appointment;
the booking's escrow is frozen until an admin resolves it with a
refund, a release to the freelancer or no action.
"""
