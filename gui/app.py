"""Desktop entrypoint for the cipher tool GUI."""

from __future__ import annotations

import logging
import sys

from PySide6.QtWidgets import QApplication

from cipher.alphabet import Alphabet
from configs.loader import ConfigLoader
from core.session import CipherSession
from gui.main_window import MainWindow
from main import build_session

LOGGER = logging.getLogger(__name__)


def main(config_path: str = "configs/default_breaker.yaml", quadgrams_path: str | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    config = ConfigLoader.load(config_path)
    try:
        session = build_session(config, quadgrams_path=quadgrams_path)
    except (OSError, ValueError) as exc:
        LOGGER.warning("Quadgram dataset unavailable (%s); starting without a breaker", exc)
        session = CipherSession(Alphabet(config.alphabet), seed=config.seed)

    app = QApplication.instance() or QApplication(sys.argv)
    window = MainWindow(session, defaults=config)
    window.resize(900, 800)
    window.show()
    return int(app.exec())


if __name__ == "__main__":
    raise SystemExit(main())
