"""Policies app package.

Client cancellation refund tiers and the freelancer reliability rules
applied when freelancers cancel at the last minute.
"""
