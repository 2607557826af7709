"""
Adaptive Mirror — a thirty-second behavioral reflection.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path

faulthandler.enable()

# Ensure adaptive_mirror is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication

from adaptive_mirror.ui.main_window import MainWindow
from adaptive_mirror.ui.styles import DARK_STYLESHEET


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("adaptive_mirror.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Adaptive Mirror...")

    app = QApplication(sys.argv)
    app.setApplicationName("Adaptive Mirror")
    app.setOrganizationName("AdaptiveMirror")

    # Apply dark theme globally
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()

    logger.info("Application started.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
