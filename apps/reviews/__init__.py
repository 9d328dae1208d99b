"""Reviews app package.

Clients rate freelancers after a completed booking; freelancers may
answer once and admins can hide abusive reviews. Each change refreshes
the rating cached on the freelancer profile.
"""
