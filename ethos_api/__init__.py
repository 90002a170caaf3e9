from .config import EthosConfig
from .client import EthosClient, format_userkey
