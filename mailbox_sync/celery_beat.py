from datetime import timedelta

# This schedule is included in the project settings:
# from mailbox_sync.celery_beat import CELERY_BEAT_SCHEDULE
#
# Registrations are stored per account in minutes, so checking every minute
# is enough to honor the shortest interval.

CELERY_BEAT_SCHEDULE = {
    "dispatch-periodic-mailbox-syncs": {
        "task": "mailbox_sync.tasks.sync.dispatch_periodic_syncs",
        "schedule": timedelta(minutes=1),
        "options": {"expires": 55},
    },
}
