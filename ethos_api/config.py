import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()


class EthosConfig:
    def __init__(
        self,
        api_base: Optional[str] = None,
        client_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.API_BASE = api_base or os.getenv("ETHOS_API_BASE", "https://api.ethos.network")
        self.CLIENT_NAME = client_name or os.getenv("ETHOS_CLIENT_NAME", "ethos-telegram-agent")
        self.TIMEOUT_SECONDS = timeout_seconds or float(os.getenv("LOOKUP_TIMEOUT_SECONDS", "5"))
