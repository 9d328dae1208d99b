"""Availability app package.

Weekly working hours, date exceptions and booking settings of each
freelancer, plus the slot generator used by search and booking.
"""
