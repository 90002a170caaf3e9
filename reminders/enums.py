import enum
# =========================================================
# ENUMS
# =========================================================
class NotificationKind(str, enum.Enum):
    reminder = "reminder"
    task_refresh = "task_refresh"
    test = "test"

class DeliveryFailure(str, enum.Enum):
    permanent = "permanent"   # recipient blocked the bot or chat no longer exists
    transient = "transient"

class DispatchOutcome(str, enum.Enum):
    sent = "sent"
    failed = "failed"
    skipped = "skipped"
