"""
Notification bodies (Telegram HTML).
"""
from .timeutils import format_time_for_display

REMINDER_MESSAGE = """
🔔 <b>Daily Reminder: Keep Your Ethos Streak Alive!</b>

Don't forget to complete your contributor tasks today to maintain your streak on the Ethos Network!

✅ <b>What you can do:</b>
• Review other users' profiles
• Vouch for trusted community members
• Participate in network governance
• Share valuable insights and feedback

⏰ <b>Time remaining:</b> Until midnight UTC (00:00)

<i>Use /disable_task_reminders to disable or /set_reminder_time to change your reminder time.</i>
""".strip()

TASK_REFRESH_MESSAGE = """
🌅 <b>New Contributor Tasks Available!</b>

The daily reset just happened at midnight UTC. Fresh contributor tasks are ready on the Ethos Network.

Start early to keep your streak going!

<i>Use /disable_task_refresh to stop these notifications.</i>
""".strip()


def build_test_reminder_message(test_hour: int) -> str:
    slot = format_time_for_display(f"{test_hour:02d}:00")
    return f"""
🔔 <b>TEST: Daily Reminder - Keep Your Ethos Streak Alive!</b>

This is a test of the daily reminder system. Testing for {slot}.

Don't forget to complete your contributor tasks today to maintain your streak on the Ethos Network!

<i>This was a test message. Use /set_reminder_time to change your reminder time or /disable_task_reminders to disable.</i>
""".strip()
