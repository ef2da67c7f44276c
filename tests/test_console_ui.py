import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

pytest.importorskip("PySide6")
pytest.importorskip("PySide6.QtWidgets")

from PySide6.QtWidgets import QApplication

from keypair_console.app import MASKED_SECRET, KeypairConsole, build_window
from keypair_console.store import MemoryStore
from keypair_console.wallet import WalletController, WalletState


class ReadOnlyStore(MemoryStore):
    def set(self, slot: str, value: str) -> None:
        raise OSError("read-only file system")


@pytest.fixture(scope="module")
def qapp():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def test_created_keypair_is_listed_with_masked_secret(qapp):
    console = build_window()

    console._create_keypair()

    assert console.records_table.rowCount() == 1
    assert console.records_table.item(0, 1).text() == MASKED_SECRET
    assert console.from_select.count() == 2
    console.close()


def test_toggle_reveals_private_key(qapp):
    console = build_window()
    record = console.wallet_controller.create_keypair()
    console.records_table.selectRow(0)

    console._toggle_private_key()

    assert console.records_table.item(0, 1).text() == record.private_key
    console.close()


def test_incomplete_transfer_shows_error(qapp):
    console = build_window()
    errors: list[tuple[str, str]] = []
    console._show_error = lambda title, message: errors.append((title, message))

    console._transfer()

    assert errors and errors[0][0] == "Transfer failed"
    console.close()


def test_delete_without_selection_warns(qapp):
    console = build_window()
    errors: list[tuple[str, str]] = []
    console._show_error = lambda title, message: errors.append((title, message))

    console._delete_selected()

    assert errors[0][0] == "Select a keypair"
    console.close()


def test_failed_create_shows_error_and_keeps_table(qapp):
    console = KeypairConsole(WalletController(WalletState(), ReadOnlyStore()))
    errors: list[tuple[str, str]] = []
    console._show_error = lambda title, message: errors.append((title, message))

    console._create_keypair()

    assert errors[0][0] == "Create failed"
    assert console.records_table.rowCount() == 0
    assert console.activity_list.count() == 0
    console.close()


def test_activity_list_mirrors_session_activity(qapp):
    console = build_window()

    console._create_keypair()
    console._handle_network_changed("Testnet")

    shown = [console.activity_list.item(row).text() for row in range(console.activity_list.count())]
    assert shown == console.wallet_state.activity
    assert shown[-1] == "Switched to Testnet"
    console.close()
