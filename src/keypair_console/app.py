"""Desktop console for creating, funding, and transferring between keypairs."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent, QColor, QPalette
from PySide6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .config import FAUCET_WEBSITE, NETWORKS, ConsoleSettings, load_settings
from .errors import ConfirmationTimeoutError, StorageError, WalletError
from .store import JsonFileStore, MemoryStore
from .wallet import WalletController, WalletState

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKGROUND = "#10141f"
SURFACE = "#1a2133"
ACCENT = "#14f195"
DANGER = "#ff4444"
TEXT_PRIMARY = "#f2f4f8"
TEXT_MUTED = "#9aa4b8"
MASKED_SECRET = "•••••••••••••"


def configure_palette(app: QApplication) -> None:
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(BACKGROUND))
    palette.setColor(QPalette.ColorRole.Base, QColor(SURFACE))
    palette.setColor(QPalette.ColorRole.Text, QColor(TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.ButtonText, QColor(TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.WindowText, QColor(TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(ACCENT))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor(BACKGROUND))
    app.setPalette(palette)

    app.setStyleSheet(
        f"""
        QPushButton {{
            background-color: {ACCENT};
            color: {BACKGROUND};
            border-radius: 6px;
            padding: 6px 10px;
            font-weight: 600;
        }}
        QPushButton#danger {{
            background-color: {DANGER};
            color: white;
        }}
        QLabel#muted {{
            color: {TEXT_MUTED};
        }}
        QFrame#card {{
            background-color: {SURFACE};
            border-radius: 10px;
            padding: 10px;
        }}
        """
    )


class KeypairConsole(QWidget):
    def __init__(self, controller: WalletController) -> None:
        super().__init__()
        self.wallet_controller = controller
        self.wallet_state = controller.state
        # Single loop so the cached RPC client stays bound to it between actions.
        self._loop = asyncio.new_event_loop()
        self.setWindowTitle("Solana Keypair Console")
        self.setMinimumSize(860, 720)
        self._build()
        self.wallet_controller.book.subscribe(self._refresh_records)
        self._refresh_records()

    def _build(self) -> None:
        layout = QVBoxLayout()
        header = QLabel("Solana Keypairs")
        header.setStyleSheet("font-size: 20pt; font-weight: 700;")
        layout.addWidget(header)
        layout.addLayout(self._network_row())
        layout.addWidget(self._records_card())
        layout.addWidget(self._transfer_card())
        layout.addWidget(QLabel("Activity"))
        self.activity_list = QListWidget()
        layout.addWidget(self.activity_list)
        self.setLayout(layout)

    def _network_row(self) -> QHBoxLayout:
        row = QHBoxLayout()
        combo = QComboBox()
        combo.addItems(NETWORKS)
        combo.setCurrentText(self.wallet_state.network)
        combo.currentTextChanged.connect(self._handle_network_changed)
        self.network_select = combo

        self.status_label = QLabel()
        self.status_label.setObjectName("muted")

        create_button = QPushButton("Create New Keypair")
        create_button.clicked.connect(self._create_keypair)
        import_button = QPushButton("Import…")
        import_button.clicked.connect(self._import_records)
        export_button = QPushButton("Export…")
        export_button.clicked.connect(self._export_records)

        row.addWidget(combo)
        row.addWidget(self.status_label)
        row.addStretch()
        row.addWidget(create_button)
        row.addWidget(import_button)
        row.addWidget(export_button)
        return row

    def _records_card(self) -> QFrame:
        card = QFrame()
        card.setObjectName("card")
        column = QVBoxLayout()

        table = QTableWidget(0, 3)
        table.setHorizontalHeaderLabels(["Public key", "Private key", "Balance (SOL)"])
        table.horizontalHeader().setStretchLastSection(True)
        table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.records_table = table

        actions = QHBoxLayout()
        for label, handler in (
            ("Copy public key", self._copy_public_key),
            ("Show/Hide private key", self._toggle_private_key),
            ("Copy private key", self._copy_private_key),
            ("Refresh balance", self._refresh_balance),
        ):
            button = QPushButton(label)
            button.clicked.connect(handler)
            actions.addWidget(button)

        self.faucet_input = QLineEdit(self.wallet_state.faucet_amount)
        self.faucet_input.setFixedWidth(60)
        faucet_button = QPushButton("Fund (Faucet)")
        faucet_button.clicked.connect(self._request_airdrop)
        faucet_link = QLabel(f"<a href='{FAUCET_WEBSITE}'>Faucet website</a>")
        faucet_link.setOpenExternalLinks(True)
        delete_button = QPushButton("Delete")
        delete_button.setObjectName("danger")
        delete_button.clicked.connect(self._delete_selected)

        actions.addWidget(self.faucet_input)
        actions.addWidget(faucet_button)
        actions.addWidget(faucet_link)
        actions.addStretch()
        actions.addWidget(delete_button)

        column.addWidget(table)
        column.addLayout(actions)
        card.setLayout(column)
        return card

    def _transfer_card(self) -> QFrame:
        card = QFrame()
        card.setObjectName("card")
        form = QFormLayout()

        self.from_select = QComboBox()
        self.to_input = QLineEdit()
        self.to_input.setPlaceholderText("Destination public key")
        self.amount_input = QLineEdit()
        self.amount_input.setPlaceholderText("0.1")
        transfer_button = QPushButton("Transfer")
        transfer_button.clicked.connect(self._transfer)

        form.addRow("From address", self.from_select)
        form.addRow("To public key", self.to_input)
        form.addRow("Amount (SOL)", self.amount_input)
        form.addRow(transfer_button)
        card.setLayout(form)
        return card

    def _run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        return self._loop.run_until_complete(coroutine)

    def _refresh_records(self) -> None:
        records = self.wallet_controller.records()
        self.records_table.setRowCount(len(records))
        for row, record in enumerate(records):
            public_item = QTableWidgetItem(record.public_key)
            public_item.setData(Qt.ItemDataRole.UserRole, record.id)
            secret = record.private_key if record.show_private else MASKED_SECRET
            self.records_table.setItem(row, 0, public_item)
            self.records_table.setItem(row, 1, QTableWidgetItem(secret))
            self.records_table.setItem(row, 2, QTableWidgetItem(f"{record.balance}"))

        selected_source = self.wallet_state.transfer_draft.from_id
        self.from_select.blockSignals(True)
        self.from_select.clear()
        self.from_select.addItem("Select an address", None)
        for record in records:
            self.from_select.addItem(record.public_key, record.id)
        index = self.from_select.findData(selected_source)
        self.from_select.setCurrentIndex(max(index, 0))
        self.from_select.blockSignals(False)

        self.status_label.setText(self.wallet_state.status_line(len(records)))

    def _selected_record_id(self) -> Optional[int]:
        row = self.records_table.currentRow()
        if row < 0:
            self._show_error("Select a keypair", "Choose a keypair from the list first.")
            return None
        return self.records_table.item(row, 0).data(Qt.ItemDataRole.UserRole)

    def _selected_record(self):
        record_id = self._selected_record_id()
        return None if record_id is None else self.wallet_controller.book.get(record_id)

    def _create_keypair(self) -> None:
        try:
            self.wallet_controller.create_keypair()
        except WalletError as exc:
            self._show_error("Create failed", str(exc))
            return
        self._sync_activity()

    def _delete_selected(self) -> None:
        record_id = self._selected_record_id()
        if record_id is None:
            return
        try:
            self.wallet_controller.delete_keypair(record_id)
        except WalletError as exc:
            self._show_error("Delete failed", str(exc))
            return
        self._sync_activity()

    def _toggle_private_key(self) -> None:
        record_id = self._selected_record_id()
        if record_id is None:
            return
        try:
            self.wallet_controller.toggle_private_key(record_id)
        except WalletError as exc:
            self._show_error("Update failed", str(exc))

    def _copy_public_key(self) -> None:
        record = self._selected_record()
        if record is not None:
            QApplication.clipboard().setText(record.public_key)
            self._enqueue_action("Copied public key")

    def _copy_private_key(self) -> None:
        record = self._selected_record()
        if record is not None:
            QApplication.clipboard().setText(record.private_key)
            self._enqueue_action("Copied private key")

    def _refresh_balance(self) -> None:
        record_id = self._selected_record_id()
        if record_id is None:
            return
        try:
            self._run(self.wallet_controller.refresh_balance(record_id))
        except WalletError as exc:
            self._show_error("Balance error", str(exc))
            return
        self._sync_activity()

    def _request_airdrop(self) -> None:
        record_id = self._selected_record_id()
        if record_id is None:
            return
        self.wallet_state.faucet_amount = self.faucet_input.text().strip()
        try:
            result = self._run(self.wallet_controller.request_airdrop(record_id))
        except ConfirmationTimeoutError as exc:
            self._show_error("Airdrop outcome unknown", str(exc))
            return
        except WalletError as exc:
            self._show_error("Airdrop failed", str(exc))
            return
        self._sync_activity()
        self._show_message("Airdrop successful", f"Signature: {result.signature}")

    def _sync_transfer_draft(self) -> None:
        draft = self.wallet_state.transfer_draft
        draft.from_id = self.from_select.currentData()
        draft.to_address = self.to_input.text()
        draft.amount = self.amount_input.text()

    def _transfer(self) -> None:
        self._sync_transfer_draft()
        try:
            result = self._run(self.wallet_controller.transfer())
        except ConfirmationTimeoutError as exc:
            self._enqueue_action(f"Transfer pending: {exc.signature}")
            self._show_error("Transfer outcome unknown", str(exc))
            return
        except WalletError as exc:
            self._show_error("Transfer failed", str(exc))
            return

        self.to_input.clear()
        self.amount_input.clear()
        self.from_select.setCurrentIndex(0)
        self._enqueue_action(f"Explorer: {self.wallet_controller.explorer_url(result.signature)}")
        self._show_message("Transfer successful", f"Transaction signature: {result.signature}")

    def _import_records(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import keypairs", "", "JSON Files (*.json)")
        if not path:
            return
        try:
            report = self.wallet_controller.import_from_file(Path(path))
        except WalletError as exc:
            self._show_error("Import failed", str(exc))
            return
        self._sync_activity()
        self._show_message("Import finished", report.summary())

    def _export_records(self) -> None:
        confirm = QMessageBox.question(
            self,
            "Export private keys?",
            "The export file contains every private key in plain text. Continue?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if confirm != QMessageBox.StandardButton.Yes:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export keypairs", "keypairs.json", "JSON Files (*.json)")
        if not path:
            return
        try:
            count = self.wallet_controller.export_to_file(Path(path))
        except OSError as exc:
            self._show_error("Export failed", str(exc))
            return
        self._sync_activity()
        self._show_message("Export finished", f"Exported {count} keypair(s)")

    def _handle_network_changed(self, network: str) -> None:
        self.wallet_controller.switch_network(network)  # type: ignore[arg-type]
        self._refresh_records()
        self._sync_activity()

    def _enqueue_action(self, description: str) -> None:
        self.wallet_state.record_activity(description)
        self._sync_activity()

    def _sync_activity(self) -> None:
        """Append session activity entries the list does not show yet."""

        for description in self.wallet_state.activity[self.activity_list.count() :]:
            self.activity_list.addItem(description)

    def _show_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)

    def _show_message(self, title: str, message: str) -> None:
        QMessageBox.information(self, title, message)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        if not self._loop.is_closed():
            self._run(self.wallet_controller.close())
            self._loop.close()
        super().closeEvent(event)


def build_window(settings: Optional[ConsoleSettings] = None) -> KeypairConsole:
    """Create the console; without settings the session keeps records in memory."""

    if settings is None:
        store = MemoryStore()
        state = WalletState()
        timeout = ConsoleSettings().confirmation_timeout
    else:
        store = JsonFileStore(Path(settings.store_path))
        state = WalletState(network=settings.network)  # type: ignore[arg-type]
        timeout = settings.confirmation_timeout
    controller = WalletController(state, store, confirmation_timeout=timeout)
    return KeypairConsole(controller)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    configure_palette(app)
    try:
        window = build_window(settings)
    except StorageError as exc:
        logger.error("Cannot open address book: %s", exc)
        QMessageBox.critical(None, "Address book unreadable", str(exc))
        sys.exit(1)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
