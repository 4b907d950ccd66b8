"""Entry point for the upsell-builder Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from upsell.config import DEBUG_LOG_PATH
from upsell.upsell_app import UpsellBuilderApp


def configure_logging(path: str = DEBUG_LOG_PATH, level: int = logging.DEBUG) -> None:
    """Send log records to a file; the terminal belongs to the app."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_file,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    UpsellBuilderApp().run()


if __name__ == "__main__":
    main()
