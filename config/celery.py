import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("braida")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Expire booking requests nobody accepted in time - every minute
    "expire-pending-bookings": {
        "task": "bookings.expire_pending_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Move paid, confirmed bookings to IN_PROGRESS once they start
    "start-due-bookings": {
        "task": "bookings.start_due_bookings",
        "schedule": crontab(minute="*/15"),
    },
    # Release escrow for bookings the client never confirmed
    "process-auto-confirms": {
        "task": "finances.process_auto_confirms",
        "schedule": crontab(minute="*/15"),
    },
    # Pay out due freelancer earnings - daily at 09:00
    "process-scheduled-payouts": {
        "task": "payouts.process_scheduled_payouts",
        "schedule": crontab(minute=0, hour=9),
    },
    # Day-before reminders - every hour
    "send-booking-reminders": {
        "task": "notifications.send_booking_reminders",
        "schedule": crontab(minute=30),
    },
}

app.conf.timezone = "Europe/London"
