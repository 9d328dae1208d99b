"""Verification app package.

Freelancers submit identity documents; admins approve or reject them.
"""
