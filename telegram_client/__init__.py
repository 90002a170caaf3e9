from .config import TelegramConfig
from .client import TelegramSink, send_telegram_text
