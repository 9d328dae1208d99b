"""Discount coupons managed by admins and checked at checkout."""
