"""
Task-Completion Gate

Decides whether a scheduled reminder should be suppressed because the user
already finished today's contributor tasks. Fails open: only an explicit
"tasks completed" answer from Ethos suppresses a reminder.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .interfaces import ReputationLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    suppress: bool
    reason: Optional[str] = None


class TaskCompletionGate:
    def __init__(self, lookup: ReputationLookup) -> None:
        self._lookup = lookup

    def can_send_reminder(self, identity_key: Optional[str]) -> GateDecision:
        if not identity_key or not identity_key.strip():
            return GateDecision(suppress=False, reason="no userkey set")

        try:
            profile_id = self._lookup.resolve_profile_id(identity_key)
        except Exception as e:
            logger.warning(f"Could not resolve profileId for {identity_key}: {e}")
            return GateDecision(suppress=False, reason=f"profile lookup failed: {e}")

        if not profile_id:
            return GateDecision(suppress=False, reason="Could not find profileId for user")

        try:
            status = self._lookup.get_daily_contribution_status(profile_id)
        except Exception as e:
            logger.warning(f"Could not check daily contributions for profileId {profile_id}: {e}")
            return GateDecision(suppress=False, reason=f"contribution status failed: {e}")

        if status.can_generate is False:
            return GateDecision(suppress=True, reason="daily contributor tasks already completed")
        return GateDecision(suppress=False)
