"""Catalog app package.

The style taxonomy (a category tree), freelancer services with studio
and mobile pricing, and discounted service packages.
"""
