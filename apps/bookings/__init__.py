"""Bookings app package.

Appointment requests between clients and freelancers: creation against
generated slots, the freelancer's accept/decline decision, cancellations
priced by the refund policy, reschedule requests and the periodic
expiry and start transitions.
"""
