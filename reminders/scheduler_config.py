"""
Scheduler Configuration for Reminders

Defines reminder defaults, limits and dispatch settings.
"""

# Default reminder time for new profiles (UTC, 2 hours before the daily reset)
DEFAULT_REMINDER_TIME = "22:00"

# Maximum reminder times per user
MAX_REMINDER_TIMES = 3

# Identical notifications of the same kind are suppressed inside this window
DEDUP_WINDOW_MINUTES = 60

# Batches larger than this get a pause between sends (Telegram rate limits)
RATE_LIMIT_BATCH_SIZE = 10
RATE_LIMIT_DELAY_SECONDS = 0.1

# Daily task refresh broadcast (UTC)
TASK_REFRESH_HOUR = 0
TASK_REFRESH_MINUTE = 0

# Hourly reminder tick fires at this minute past every hour
HOURLY_TICK_MINUTE = 0
