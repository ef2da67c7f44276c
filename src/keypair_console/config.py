"""Cluster endpoints, wallet constants, and persisted console settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

Network = Literal["Mainnet", "Testnet", "Devnet"]
NETWORKS: list[Network] = ["Mainnet", "Testnet", "Devnet"]
DEFAULT_NETWORK: Network = "Devnet"

DEFAULT_ENDPOINTS: dict[Network, list[str]] = {
    "Mainnet": [
        "https://api.mainnet-beta.solana.com",
    ],
    "Testnet": [
        "https://api.testnet.solana.com",
    ],
    "Devnet": [
        "https://api.devnet.solana.com",
        "https://rpc.ankr.com/solana_devnet",
    ],
}

# Clusters that serve requestAirdrop.
FAUCET_NETWORKS: frozenset[str] = frozenset({"Testnet", "Devnet"})
FAUCET_WEBSITE = "https://faucet.solana.com/"

LAMPORTS_PER_SOL = 1_000_000_000
FEE_RESERVE_SOL = Decimal("0.000005")
FAUCET_CAP_SOL = Decimal("2")
CONFIRMATION_TIMEOUT_SECONDS = 30.0
COMMITMENT = "confirmed"

STORAGE_SLOT = "solanaAddresses"
SECRET_KEY_LENGTH = 64

USER_SETTINGS_FILE = Path.home() / ".keypair_console" / "settings.json"
DEFAULT_STORE_PATH = Path.home() / ".keypair_console" / "store.json"


@dataclass
class ConsoleSettings:
    """User-adjustable settings stored next to the address book."""

    network: str = DEFAULT_NETWORK
    store_path: str = str(DEFAULT_STORE_PATH)
    confirmation_timeout: float = CONFIRMATION_TIMEOUT_SECONDS
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.network not in NETWORKS:
            raise ValueError(f"Unknown network {self.network!r}; expected one of {NETWORKS}")
        if self.confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")


def load_settings(path: Path = USER_SETTINGS_FILE) -> ConsoleSettings:
    """Read settings from disk, falling back to defaults for a missing or broken file."""

    if not path.exists():
        return ConsoleSettings()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return ConsoleSettings()

    if not isinstance(raw, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return ConsoleSettings()

    known = {field.name for field in fields(ConsoleSettings)}
    try:
        return ConsoleSettings(**{key: value for key, value in raw.items() if key in known})
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid settings in %s: %s", path, exc)
        return ConsoleSettings()


def save_settings(settings: ConsoleSettings, path: Path = USER_SETTINGS_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
