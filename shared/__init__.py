"""
Shared Kernel

Building blocks shared across all marketplace apps: value objects for
money and time windows, and infrastructure helpers for sensitive data.
"""
