import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from keypair_console.config import CONFIRMATION_TIMEOUT_SECONDS, ConsoleSettings, load_settings, save_settings


def test_missing_file_yields_defaults(tmp_path):
    settings = load_settings(tmp_path / "settings.json")

    assert settings.network == "Devnet"
    assert settings.confirmation_timeout == CONFIRMATION_TIMEOUT_SECONDS


def test_round_trip(tmp_path):
    path = tmp_path / "conf" / "settings.json"
    save_settings(ConsoleSettings(network="Testnet", confirmation_timeout=10.0), path)

    loaded = load_settings(path)

    assert loaded.network == "Testnet"
    assert loaded.confirmation_timeout == 10.0


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"network": "Moonnet", "unknown": 1}))

    assert load_settings(path) == ConsoleSettings()

    path.write_text("not json")
    assert load_settings(path) == ConsoleSettings()
