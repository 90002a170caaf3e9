import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from .scheduler_config import DEDUP_WINDOW_MINUTES

logger = logging.getLogger(__name__)

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ReminderConfig:
    def __init__(
        self,
        database_url: Optional[str] = None,
        dedup_window_minutes: Optional[int] = None,
        scheduler_enabled: Optional[bool] = None,
    ) -> None:
        self.DATABASE_URL = database_url or os.getenv("DATABASE_URL", "sqlite:///./reminders.db")
        self.DEDUP_WINDOW_MINUTES = dedup_window_minutes or int(
            os.getenv("DEDUP_WINDOW_MINUTES", DEDUP_WINDOW_MINUTES)
        )
        self.SCHEDULER_ENABLED = (
            scheduler_enabled if scheduler_enabled is not None
            else _env_bool("SCHEDULER_ENABLED", True)
        )
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
