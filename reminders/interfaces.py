"""
The two narrow interfaces the reminder subsystem consumes.

telegram_client.TelegramSink and ethos_api.EthosClient implement them;
tests use in-memory fakes.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from .enums import DeliveryFailure


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    failure: Optional[DeliveryFailure] = None
    detail: Optional[str] = None

    @property
    def permanent(self) -> bool:
        return self.failure == DeliveryFailure.permanent

    @classmethod
    def success(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, failure: DeliveryFailure, detail: str = "") -> "DeliveryResult":
        return cls(ok=False, failure=failure, detail=detail)


@dataclass(frozen=True)
class ContributionStatus:
    can_generate: bool


class MessagingSink(Protocol):
    def send(self, user_id: str, text: str, keyboard: Optional[Mapping[str, Any]] = None) -> DeliveryResult:
        ...


class ReputationLookup(Protocol):
    def resolve_profile_id(self, identity_key: str) -> Optional[int]:
        """Profile id for the userkey, or None when the network has no profile."""
        ...

    def get_daily_contribution_status(self, profile_id: int) -> ContributionStatus:
        """Raises UpstreamError when the status cannot be fetched."""
        ...
