"""
Dispatch Engine

Runs one scheduler tick: picks the users to notify, consults the
Task-Completion Gate and the Dedup Guard, sends through the messaging sink
and prunes users the sink reports as permanently unreachable.

No user's failure blocks the rest of the batch.
"""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Callable, List

from .database import utcnow
from .dedup import DedupGuard, fingerprint_message
from .enums import DeliveryFailure, DispatchOutcome, NotificationKind
from .errors import StorageError
from .gate import TaskCompletionGate
from .interfaces import DeliveryResult, MessagingSink
from .messages import REMINDER_MESSAGE, TASK_REFRESH_MESSAGE, build_test_reminder_message
from .metrics import NOTIFICATIONS_TOTAL, TICK_DURATION, USERS_DEACTIVATED
from .models import UserNotificationProfile
from .scheduler_config import RATE_LIMIT_BATCH_SIZE, RATE_LIMIT_DELAY_SECONDS
from .store import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def count(self, outcome: DispatchOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def as_dict(self) -> dict:
        return asdict(self)


class DispatchEngine:
    def __init__(
        self,
        store: PreferenceStore,
        gate: TaskCompletionGate,
        dedup: DedupGuard,
        sink: MessagingSink,
        sleep: Callable[[float], None] = time.sleep,
        clock=utcnow,
    ) -> None:
        self.store = store
        self.gate = gate
        self.dedup = dedup
        self.sink = sink
        self._sleep = sleep
        self._clock = clock

    # =========================================================
    # ENTRY POINTS
    # =========================================================
    def run_hourly_tick(self, hour: int) -> DispatchSummary:
        """Send reminders to everyone scheduled for this UTC hour."""
        logger.info(f"🔔 Checking for reminders at hour {hour} UTC...")
        with TICK_DURATION.labels(trigger="hourly").time():
            users = self._load(lambda: self.store.users_due_at(hour), "reminder")
            if not users:
                logger.info(f"No users scheduled for reminders at {hour}:00 UTC")
                return DispatchSummary()

            logger.info(f"Sending reminders to {len(users)} users at {hour}:00 UTC")
            summary = self._dispatch(
                users,
                kind=NotificationKind.reminder,
                text=REMINDER_MESSAGE,
                slot=f"{hour:02d}:00 UTC",
                use_gate=True,
                use_dedup=True,
            )
        logger.info(
            f"✅ Reminder summary for {hour}:00 UTC: {summary.sent} sent, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    def run_daily_tick(self) -> DispatchSummary:
        """
        Broadcast the midnight task refresh notice to opted-in users.

        No gate here, but the dedup guard still runs with the UTC date as the
        slot: a second run on the same day (overlapping firing, manual
        /internals/ticks/daily) reports those users as skipped instead of
        sending the notice twice.
        """
        logger.info("🌅 Running daily task refresh notifications...")
        with TICK_DURATION.labels(trigger="daily").time():
            users = self._load(self.store.users_opted_into_task_refresh, "task refresh")
            if not users:
                logger.info("No users opted into task refresh notifications")
                return DispatchSummary()

            summary = self._dispatch(
                users,
                kind=NotificationKind.task_refresh,
                text=TASK_REFRESH_MESSAGE,
                slot=self._clock().date().isoformat(),
                use_gate=False,
                use_dedup=True,
            )
        logger.info(f"✅ Task refresh summary: {summary.sent} sent, {summary.failed} failed")
        return summary

    def run_test_reminder(self, hour: int) -> DispatchSummary:
        """Send the test reminder to users who opted into test messages."""
        users = self._load(self.store.users_opted_into_test_messages, "test")
        if not users:
            logger.info("No users opted into test messages")
            return DispatchSummary()

        summary = self._dispatch(
            users,
            kind=NotificationKind.test,
            text=build_test_reminder_message(hour),
            slot=f"test {hour:02d}:00 UTC",
            use_gate=False,
            use_dedup=False,
        )
        logger.info(f"🧪 Test reminder sent to {summary.sent}/{len(users)} users")
        return summary

    # =========================================================
    # INTERNALS
    # =========================================================
    def _load(self, query: Callable[[], List[UserNotificationProfile]], label: str) -> List[UserNotificationProfile]:
        try:
            return query()
        except StorageError as e:
            logger.error(f"Failed to load users for {label} notifications: {e}")
            return []

    def _dispatch(
        self,
        users: List[UserNotificationProfile],
        kind: NotificationKind,
        text: str,
        slot: str,
        use_gate: bool,
        use_dedup: bool,
    ) -> DispatchSummary:
        summary = DispatchSummary()
        fingerprint = fingerprint_message(f"{slot}|{text}")
        throttle = len(users) > RATE_LIMIT_BATCH_SIZE

        for profile in users:
            try:
                outcome = self._notify(profile, kind, text, fingerprint, use_gate, use_dedup)
            except Exception as e:
                logger.error(f"Error processing {kind.value} for user {profile.user_id}: {e}", exc_info=True)
                outcome = DispatchOutcome.failed

            summary.count(outcome)
            NOTIFICATIONS_TOTAL.labels(kind=kind.value, outcome=outcome.value).inc()

            if throttle and outcome != DispatchOutcome.skipped:
                self._sleep(RATE_LIMIT_DELAY_SECONDS)

        return summary

    def _notify(
        self,
        profile: UserNotificationProfile,
        kind: NotificationKind,
        text: str,
        fingerprint: str,
        use_gate: bool,
        use_dedup: bool,
    ) -> DispatchOutcome:
        user_id = profile.user_id

        if use_gate and profile.external_identity_key:
            decision = self.gate.can_send_reminder(profile.external_identity_key)
            if decision.suppress:
                logger.info(f"⏭️ Skipping reminder for user {user_id}: {decision.reason}")
                return DispatchOutcome.skipped
            if decision.reason:
                logger.info(f"Sending reminder to user {user_id} anyway: {decision.reason}")

        if use_dedup and self.dedup.was_recently_sent(user_id, kind, fingerprint):
            logger.info(f"⏭️ Duplicate {kind.value} for user {user_id} suppressed")
            return DispatchOutcome.skipped

        try:
            result = self.sink.send(user_id, text)
        except Exception as e:
            result = DeliveryResult.failed(DeliveryFailure.transient, str(e))

        if result.ok:
            if use_dedup:
                self.dedup.record_sent(user_id, kind, fingerprint)
            return DispatchOutcome.sent

        logger.error(f"❌ Failed to send {kind.value} to user {user_id}: {result.detail}")
        if result.permanent:
            try:
                self.store.deactivate(user_id)
                USERS_DEACTIVATED.inc()
            except StorageError as e:
                logger.error(f"Could not deactivate unreachable user {user_id}: {e}")
        return DispatchOutcome.failed
