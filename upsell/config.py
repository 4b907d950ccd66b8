"""Runtime configuration defaults for the catalog client and the screens."""

from __future__ import annotations

import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


API_BASE_URL = os.environ.get("UPSELL_API_BASE_URL", "")
API_KEY = os.environ.get("UPSELL_API_KEY", "")
API_TIMEOUT_SECONDS = 10.0

PAGE_SIZE = 10
SEARCH_DEBOUNCE_SECONDS = 0.5
# Rows from the end of the loaded window at which the next page is requested.
LOAD_MORE_THRESHOLD_ROWS = 10

# Pixel heights used by a graphical list renderer.
HEADER_ROW_HEIGHT = 56
SUB_ITEM_ROW_HEIGHT = 60
LOADING_ROW_HEIGHT = 50

# Line heights used by the terminal picker.
PICKER_HEADER_LINES = 2
PICKER_SUB_ITEM_LINES = 1
PICKER_LOADING_LINES = 1

# Whether a product discount is copied onto each of its variants.
CASCADE_GROUP_DISCOUNT = _env_flag("UPSELL_CASCADE_GROUP_DISCOUNT")

DEBUG_LOG_PATH = os.environ.get("UPSELL_DEBUG_LOG", "/tmp/upsell-debug.log")
