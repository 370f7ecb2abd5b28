"""Cipher tool panel: encode, decode and break text through a ``CipherSession``."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from configs.loader import BreakerConfig, build_config
from core.session import CipherSession

LOGGER = logging.getLogger(__name__)


class CipherToolPanel(QWidget):
    """Text input/output with key field and breaker parameters.

    Jobs run on the session's background worker; results and progress lines
    come back through queued signals so widgets are touched on the GUI thread
    only.
    """

    result_ready = Signal(str)
    job_failed = Signal(str)
    progress_line = Signal(str)

    def __init__(self, session: CipherSession, defaults: BreakerConfig | None = None) -> None:
        super().__init__()
        self.session = session
        self._active: Future | None = None

        root = QVBoxLayout(self)

        self.input_text = QPlainTextEdit()
        self.input_text.setPlaceholderText("Text to encode, decode or break")
        self.output_text = QPlainTextEdit()
        self.output_text.setReadOnly(True)
        self.progress_log = QPlainTextEdit()
        self.progress_log.setReadOnly(True)
        self.progress_log.setMaximumBlockCount(2000)

        self.key_edit = QLineEdit(session.random_key_text())

        self.population = QLineEdit(str(defaults.population_size if defaults else 500))
        self.generations = QLineEdit(str(defaults.generations if defaults else 300))
        self.mutation_chance = QLineEdit(str(defaults.mutation_chance if defaults else 0.3))
        self.max_genes = QLineEdit(str(defaults.max_genes_to_mutate if defaults else 4))
        self.threshold = QLineEdit(str(defaults.threshold_fitness if defaults else 0.0))

        form = QFormLayout()
        form.addRow("Key", self.key_edit)
        form.addRow("Population size", self.population)
        form.addRow("Generations", self.generations)
        form.addRow("Mutation chance", self.mutation_chance)
        form.addRow("Max genes to mutate", self.max_genes)
        form.addRow("Threshold fitness", self.threshold)

        buttons = QHBoxLayout()
        self.encode_btn = QPushButton("Encode")
        self.decode_btn = QPushButton("Decode")
        self.break_btn = QPushButton("Break")
        self.cancel_btn = QPushButton("Stop")
        self.move_btn = QPushButton("Output → Input")
        for button in (self.encode_btn, self.decode_btn, self.break_btn, self.cancel_btn, self.move_btn):
            buttons.addWidget(button)

        self.status = QLabel("Ready.")

        root.addWidget(QLabel("Input"))
        root.addWidget(self.input_text)
        root.addLayout(form)
        root.addLayout(buttons)
        root.addWidget(QLabel("Output"))
        root.addWidget(self.output_text)
        root.addWidget(QLabel("Progress"))
        root.addWidget(self.progress_log)
        root.addWidget(self.status)

        self.encode_btn.clicked.connect(self._encode)
        self.decode_btn.clicked.connect(self._decode)
        self.break_btn.clicked.connect(self._break)
        self.cancel_btn.clicked.connect(self.session.cancel)
        self.move_btn.clicked.connect(self._move_output_to_input)

        self.result_ready.connect(self._show_result)
        self.job_failed.connect(self._show_failure)
        self.progress_line.connect(self.progress_log.appendPlainText)

    def breaker_config(self) -> BreakerConfig:
        """Parse the parameter fields; raises ``ValueError`` on bad input."""
        return build_config(
            {
                "population_size": int(self.population.text()),
                "generations": int(self.generations.text()),
                "mutation_chance": float(self.mutation_chance.text()),
                "max_genes_to_mutate": int(self.max_genes.text()),
                "threshold_fitness": float(self.threshold.text()),
                "alphabet": str(self.session.alphabet),
            }
        )

    def _encode(self) -> None:
        self._submit(self.session.submit_encode, self.input_text.toPlainText(), self.key_edit.text())

    def _decode(self) -> None:
        self._submit(self.session.submit_decode, self.input_text.toPlainText(), self.key_edit.text())

    def _break(self) -> None:
        try:
            config = self.breaker_config()
        except ValueError as exc:
            self._warn(f"Wrong breaker parameters: {exc}")
            return
        self.progress_log.clear()
        self._submit(self.session.submit_break, self.input_text.toPlainText(), config, self.progress_line.emit)

    def _submit(self, submit: Any, *args: Any) -> None:
        try:
            future = submit(*args)
        except (ValueError, RuntimeError) as exc:
            self._warn(str(exc))
            return
        if future is None:
            self.status.setText("A job is already running.")
            return
        self.output_text.clear()
        self.status.setText("Running...")
        self._active = future
        future.add_done_callback(self._on_done)

    def _on_done(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            LOGGER.error("Cipher job failed", exc_info=exc)
            self.job_failed.emit(str(exc))
            return
        self.result_ready.emit(str(future.result()))

    def _show_result(self, text: str) -> None:
        self.output_text.setPlainText(text)
        self.status.setText("Done.")

    def _show_failure(self, message: str) -> None:
        self.status.setText("Failed.")
        self._warn(message)

    def _move_output_to_input(self) -> None:
        self.input_text.setPlainText(self.output_text.toPlainText())
        self.output_text.clear()

    def _warn(self, message: str) -> None:
        QMessageBox.warning(self, "Error", message)
