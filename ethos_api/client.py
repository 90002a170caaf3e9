"""
Ethos Network API client.
Only the calls the reminder subsystem needs: userkey -> profileId and the
daily contributor task status.
"""
import logging
import requests
from typing import Optional

from reminders.errors import UpstreamError
from reminders.interfaces import ContributionStatus
from .config import EthosConfig

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 42


def format_userkey(handle_or_address: str) -> str:
    """Turn "@handle" or "0x..." input into an Ethos userkey."""
    clean = handle_or_address.strip().lstrip("@")
    if clean.startswith("0x") and len(clean) == ADDRESS_LENGTH:
        return f"address:{clean}"
    return f"service:x.com:username:{clean}"


class EthosClient:
    def __init__(self, config: Optional[EthosConfig] = None) -> None:
        self.config = config or EthosConfig()

    def _api_url(self, path: str) -> str:
        return f"{self.config.API_BASE}/api/v1{path}"

    def _get(self, path: str) -> requests.Response:
        try:
            return requests.get(
                self._api_url(path),
                headers={"X-Ethos-Client": self.config.CLIENT_NAME},
                timeout=self.config.TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise UpstreamError("ethos", f"request to {path} failed: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> dict:
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError("ethos", "invalid JSON response", resp.status_code) from e

    def resolve_profile_id(self, identity_key: str) -> Optional[int]:
        resp = self._get(f"/users/{identity_key}/stats")
        if resp.status_code == 404:
            return None
        if not resp.ok:
            raise UpstreamError("ethos", "user stats lookup failed", resp.status_code)

        data = self._json(resp)
        if not data.get("ok"):
            return None
        return (data.get("data") or {}).get("profileId")

    def get_daily_contribution_status(self, profile_id: int) -> ContributionStatus:
        resp = self._get(f"/contributions/profileId:{profile_id}/stats")
        if not resp.ok:
            raise UpstreamError("ethos", f"HTTP error! status: {resp.status_code}", resp.status_code)

        data = self._json(resp)
        if not data.get("ok"):
            raise UpstreamError("ethos", "API returned error")

        can_generate = (data.get("data") or {}).get("canGenerateDailyContributions")
        if can_generate is None:
            raise UpstreamError("ethos", "response missing canGenerateDailyContributions")
        logger.debug(f"profileId {profile_id} canGenerateDailyContributions={can_generate}")
        return ContributionStatus(can_generate=bool(can_generate))
