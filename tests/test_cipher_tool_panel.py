"""Tests for the cipher tool panel and main window."""

from __future__ import annotations

import os

import pytest

KEY = "QWERTYUIOPASDFGHJKLZXCVBNM"


def _qt_app():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


def test_panel_prefills_valid_key_and_parses_parameters() -> None:
    _app = _qt_app()
    from cipher.alphabet import Alphabet
    from core.session import CipherSession
    from gui.cipher_tool_panel import CipherToolPanel

    session = CipherSession(Alphabet.english(), seed=1)
    panel = CipherToolPanel(session)
    try:
        key = panel.key_edit.text()
        assert session.validate_key_text(key) == key

        panel.population.setText("40")
        panel.generations.setText("12")
        config = panel.breaker_config()
        assert config.population_size == 40
        assert config.generations == 12
        assert config.alphabet == "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    finally:
        panel.close()
        session.close()


def test_panel_encode_runs_on_session_worker() -> None:
    _app = _qt_app()
    from cipher.alphabet import Alphabet
    from core.session import CipherSession
    from gui.cipher_tool_panel import CipherToolPanel

    session = CipherSession(Alphabet.english())
    panel = CipherToolPanel(session)
    try:
        panel.input_text.setPlainText("Hello, World!")
        panel.key_edit.setText(KEY)
        panel._encode()

        assert panel._active is not None
        assert panel._active.result(timeout=5) == "ITSSG, VGKSR!"

        panel.output_text.setPlainText("ITSSG, VGKSR!")
        panel._move_output_to_input()
        assert panel.input_text.toPlainText() == "ITSSG, VGKSR!"
        assert panel.output_text.toPlainText() == ""
    finally:
        panel.close()
        session.close()


def test_main_window_disables_break_without_dataset() -> None:
    _app = _qt_app()
    from cipher.alphabet import Alphabet
    from core.session import CipherSession
    from gui.main_window import MainWindow

    session = CipherSession(Alphabet.english())
    window = MainWindow(session)
    assert not window.tool_panel.break_btn.isEnabled()
    window.close()
    session.close()
