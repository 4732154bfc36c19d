import os
from decimal import Decimal

from dotenv import load_dotenv

from .sources.evm_rpc import EvmRpcClient

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


ALCHEMY_API_KEY = os.getenv("ALCHEMY_API_KEY", "")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))

DEFAULT_CHAIN_ID = int(os.getenv("DEFAULT_CHAIN_ID", "11155111"))
LOOKBACK_BLOCKS = int(os.getenv("LOOKBACK_BLOCKS", "10000"))
ANALYSIS_TX_LIMIT = int(os.getenv("ANALYSIS_TX_LIMIT", "20"))
LARGE_TRANSFER_THRESHOLD = Decimal(os.getenv("LARGE_TRANSFER_THRESHOLD", "1.0"))
RPC_TIMEOUT_SECONDS = float(os.getenv("RPC_TIMEOUT_SECONDS", "20"))

MAX_CONCURRENT_ANALYSES = int(os.getenv("MAX_CONCURRENT_ANALYSES", "8"))
DEDUP_WINDOW_SECONDS = int(os.getenv("DEDUP_WINDOW_SECONDS", "0"))
STORE_TTL_MINUTES = int(os.getenv("STORE_TTL_MINUTES", "120"))
STORE_MAX_ENTRIES = int(os.getenv("STORE_MAX_ENTRIES", "10000"))

AUDIT_ENABLED = _flag("AUDIT_ENABLED")
AUDIT_DB_URL = os.getenv("AUDIT_DB_URL", "sqlite:///./audits.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "console")

CHAINS = {
    1: {"name": "Ethereum Mainnet", "symbol": "ETH", "env": "MAINNET_RPC_URL",
        "default_url": "https://eth-mainnet.g.alchemy.com/v2/{key}"},
    11155111: {"name": "Sepolia Testnet", "symbol": "ETH", "env": "SEPOLIA_RPC_URL",
               "default_url": "https://eth-sepolia.g.alchemy.com/v2/{key}"},
    10143: {"name": "Monad Testnet", "symbol": "MON", "env": "MONAD_TESTNET_RPC_URL",
            "default_url": "https://testnet-rpc.monad.xyz"},
}


def rpc_urls(api_key: str = ALCHEMY_API_KEY) -> dict[int, str]:
    # sin credencial no se construye ningún proveedor: modo LIMITED
    if not api_key:
        return {}
    return {
        chain_id: os.getenv(info["env"]) or info["default_url"].format(key=api_key)
        for chain_id, info in CHAINS.items()
    }


def build_providers(api_key: str = ALCHEMY_API_KEY,
                    timeout: float = RPC_TIMEOUT_SECONDS) -> dict[int, EvmRpcClient]:
    return {
        chain_id: EvmRpcClient(chain_id, url, symbol=CHAINS[chain_id]["symbol"], timeout=timeout)
        for chain_id, url in rpc_urls(api_key).items()
    }
