from prometheus_client import Counter


reminders_created_total = Counter(
    "reminders_created_total",
    "Total reminders created via API",
)

scheduler_scans_total = Counter(
    "reminder_scheduler_scans_total",
    "Total scheduler scan cycles",
)

scheduler_dispatched_total = Counter(
    "reminder_scheduler_dispatched_total",
    "Total reminder notifications delivered to a live channel",
)

scheduler_dropped_total = Counter(
    "reminder_scheduler_dropped_total",
    "Total reminder notifications dropped because the user had no live channel",
)

scheduler_failed_total = Counter(
    "reminder_scheduler_failed_total",
    "Total per-reminder publish or reschedule failures",
)
