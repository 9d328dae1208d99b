"""Notifications app package.

In-app notifications with optional email delivery. Domain services call
``apps.notifications.services.send_notification``; a periodic task sends
reminders for upcoming appointments.
"""
