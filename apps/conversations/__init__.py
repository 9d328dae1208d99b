"""Conversations app package.

Clients and freelancers message each other, optionally about a booking.
"""
