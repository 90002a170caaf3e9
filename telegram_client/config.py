import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()


class TelegramConfig:
    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.BOT_TOKEN = bot_token or os.getenv("BOT_TOKEN")
        self.API_BASE = api_base or os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org")
        self.TIMEOUT_SECONDS = timeout_seconds or float(os.getenv("SEND_TIMEOUT_SECONDS", "5"))

        if not self.BOT_TOKEN:
            logger.warning("⚠️ BOT_TOKEN is not set; Telegram messages will not be delivered")

    @property
    def api_url(self) -> str:
        return f"{self.API_BASE}/bot{self.BOT_TOKEN}"
