"""Favorites app package.

Clients bookmark freelancers they want to book again.
"""
