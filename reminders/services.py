"""
Service wiring.

Everything the reminder subsystem needs is built once at process start and
passed by reference to the HTTP layer and the scheduler.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ethos_api import EthosClient
from telegram_client import TelegramSink
from .config import ReminderConfig
from .database import create_session_factory
from .dedup import DedupGuard
from .dispatch import DispatchEngine
from .gate import TaskCompletionGate
from .interfaces import MessagingSink, ReputationLookup
from .migrations import fold_legacy_reminder_times
from .store import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class ReminderServices:
    store: PreferenceStore
    dedup: DedupGuard
    gate: TaskCompletionGate
    engine: DispatchEngine


def build_services(
    config: Optional[ReminderConfig] = None,
    sink: Optional[MessagingSink] = None,
    lookup: Optional[ReputationLookup] = None,
) -> ReminderServices:
    cfg = config or ReminderConfig()
    session_factory = create_session_factory(cfg.DATABASE_URL)
    fold_legacy_reminder_times(session_factory)

    store = PreferenceStore(session_factory)
    dedup = DedupGuard(session_factory, window_minutes=cfg.DEDUP_WINDOW_MINUTES)
    gate = TaskCompletionGate(lookup or EthosClient())
    engine = DispatchEngine(store, gate, dedup, sink or TelegramSink())
    logger.info("✅ Reminder services initialised")
    return ReminderServices(store=store, dedup=dedup, gate=gate, engine=engine)
