"""Main cipher tool desktop window."""

from __future__ import annotations

import logging

from PySide6.QtWidgets import QMainWindow

from configs.loader import BreakerConfig
from core.session import CipherSession
from gui.cipher_tool_panel import CipherToolPanel

LOGGER = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Hosts the cipher tool panel and owns the session's shutdown."""

    def __init__(self, session: CipherSession, defaults: BreakerConfig | None = None) -> None:
        super().__init__()
        self.session = session
        self.setWindowTitle("Substitution Cipher Tool")

        self.tool_panel = CipherToolPanel(session, defaults=defaults)
        self.setCentralWidget(self.tool_panel)
        if session.fitness is None:
            self.tool_panel.break_btn.setEnabled(False)
            self.tool_panel.status.setText("No quadgram dataset loaded; breaking is disabled.")

    def closeEvent(self, event):  # type: ignore[override]
        self.session.cancel()
        self.session.close()
        return super().closeEvent(event)
