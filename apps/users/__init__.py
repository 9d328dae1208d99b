"""Users app package.

Defines the marketplace account model (clients, freelancers and admins),
freelancer profiles, JWT authentication flows and the admin moderation
API. Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL
throughout the project.
"""
