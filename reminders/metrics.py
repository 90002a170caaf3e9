from prometheus_client import Counter, Histogram

NOTIFICATIONS_TOTAL = Counter(
    "reminder_notifications_total",
    "Notifications processed by the dispatch engine",
    ["kind", "outcome"]
)

USERS_DEACTIVATED = Counter(
    "reminder_users_deactivated_total",
    "Users deactivated after a permanent delivery failure"
)

TICK_DURATION = Histogram(
    "reminder_tick_duration_seconds",
    "Duration of a scheduler tick",
    ["trigger"]
)
