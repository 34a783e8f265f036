import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key: str, default: str) -> int:
    raw = os.getenv(key, default)
    cleaned = (raw or "").strip().replace(",", "").replace("_", "")
    return int(cleaned)


def _env_float(key: str, default: str) -> float:
    raw = os.getenv(key, default)
    cleaned = (raw or "").strip().replace(",", "").replace("_", "")
    return float(cleaned)


def _env_decimal(key: str, default: str) -> Decimal:
    raw = os.getenv(key, default)
    cleaned = (raw or "").strip().replace(",", "").replace("_", "")
    return Decimal(cleaned)


def _env_str(key: str, default: str = "") -> str:
    return (os.getenv(key, default) or "").strip()


@dataclass
class Settings:
    """Centralised configuration for the transfer watcher."""

    telegram_token: str
    telegram_chat_id: str
    client_wallet: str
    token_mint: str
    helius_api_key: str

    token_name: str = field(default_factory=lambda: _env_str("TOKEN_NAME", "Lovable Meme"))
    token_symbol: str = field(default_factory=lambda: _env_str("TOKEN_SYMBOL", "LVM"))

    # Liquidity pool vaults: A holds the WSOL side, B holds the watched token.
    wsol_vault: str = field(
        default_factory=lambda: _env_str("WSOL_VAULT", "3xsB6fj8zmSjs9vHNXVVneBp3Hoz8w87jcEpBC4iwMrr")
    )
    token_vault: str = field(
        default_factory=lambda: _env_str("TOKEN_VAULT", "5KejAFhQZ8v4v4R4YxfUmL683Pu3eAPTqzPibknERYok")
    )

    helius_api_base: str = field(default_factory=lambda: _env_str("HELIUS_API_BASE", "https://api.helius.xyz/v0"))
    rpc_url_override: str = field(default_factory=lambda: _env_str("RPC_URL"))
    sol_spot_price_url: str = "https://api.coingecko.com/api/v3/simple/price"
    sol_history_url: str = "https://api.coingecko.com/api/v3/coins/solana/history"
    sol_minute_url: str = "https://min-api.cryptocompare.com/data/v2/histominute"
    cryptocompare_api_key: str = field(default_factory=lambda: _env_str("CRYPTOCOMPARE_API_KEY"))
    birdeye_price_url: str = "https://public-api.birdeye.so/defi/price"
    birdeye_api_key: str = field(default_factory=lambda: _env_str("BIRDEYE_API_KEY"))
    explorer_base_url: str = field(
        default_factory=lambda: _env_str("EXPLORER_BASE_URL", "https://solscan.io")
    )
    http_timeout: float = field(default_factory=lambda: _env_float("HTTP_TIMEOUT", "12"))

    transfers_db_path: str = field(default_factory=lambda: _env_str("TRANSFERS_DB_PATH", "transfers.db"))
    banner_image_path: Optional[str] = field(default_factory=lambda: _env_str("BANNER_IMAGE_PATH") or None)
    banner_image_scale: float = field(default_factory=lambda: _env_float("BANNER_IMAGE_SCALE", "1"))

    # Scan cadence and page sizes. The first cycle after start-up looks further back.
    scan_enabled: bool = field(default_factory=lambda: _env_bool("SCAN_ENABLED", "true"))
    scan_interval_seconds: int = field(default_factory=lambda: _env_int("SCAN_INTERVAL_SECONDS", "60"))
    initial_page_size: int = field(default_factory=lambda: _env_int("INITIAL_PAGE_SIZE", "100"))
    steady_page_size: int = field(default_factory=lambda: _env_int("STEADY_PAGE_SIZE", "5"))
    first_run_price_mode: str = field(
        default_factory=lambda: _env_str("FIRST_RUN_PRICE_MODE", "historical_by_minute")
    )
    steady_price_mode: str = field(default_factory=lambda: _env_str("STEADY_PRICE_MODE", "live_spot"))

    sol_price_fallback: Decimal = field(default_factory=lambda: _env_decimal("SOL_PRICE_FALLBACK", "150"))
    token_price_fallback: Decimal = field(
        default_factory=lambda: _env_decimal("TOKEN_PRICE_FALLBACK", "0.000036")
    )

    # Pacing between outbound calls, in seconds.
    first_run_price_delay: float = field(default_factory=lambda: _env_float("FIRST_RUN_PRICE_DELAY", "2"))
    live_price_delay: float = field(default_factory=lambda: _env_float("LIVE_PRICE_DELAY", "1"))
    pool_price_delay: float = field(default_factory=lambda: _env_float("POOL_PRICE_DELAY", "0.3"))
    entry_delay: float = field(default_factory=lambda: _env_float("ENTRY_DELAY", "0.5"))
    resend_delay: float = field(default_factory=lambda: _env_float("RESEND_DELAY", "0.5"))

    @property
    def rpc_url(self) -> str:
        if self.rpc_url_override:
            return self.rpc_url_override
        return f"https://rpc.helius.xyz/?api-key={self.helius_api_key}"

    @property
    def transactions_endpoint(self) -> str:
        return f"{self.helius_api_base}/addresses/{self.client_wallet}/transactions"

    def account_url(self, address: str) -> str:
        return f"{self.explorer_base_url}/account/{address}"

    def tx_url(self, signature: str) -> str:
        return f"{self.explorer_base_url}/tx/{signature}"

    @staticmethod
    def _require(key: str, value: Optional[str]) -> str:
        if not value:
            raise RuntimeError(f"Missing required environment variable '{key}'.")
        return value.strip()

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            telegram_token=cls._require("TELEGRAM_BOT_TOKEN", os.getenv("TELEGRAM_BOT_TOKEN")),
            telegram_chat_id=cls._require("TELEGRAM_CHAT_ID", os.getenv("TELEGRAM_CHAT_ID")),
            client_wallet=cls._require("CLIENT_WALLET", os.getenv("CLIENT_WALLET")),
            token_mint=cls._require("TOKEN_MINT", os.getenv("TOKEN_MINT")),
            helius_api_key=cls._require("HELIUS_API_KEY", os.getenv("HELIUS_API_KEY")),
        )
