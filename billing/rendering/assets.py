"""Brand assets embedded into rendered invoices as ``data:`` URIs."""

from __future__ import annotations

import base64
import logging
import mimetypes
from functools import lru_cache
from pathlib import Path
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

LOGO = "logo.svg"
CARD_ICONS = (
    ("Visa", "visa.svg"),
    ("Mastercard", "mastercard.svg"),
    ("American Express", "amex.svg"),
)


def _assets_dir() -> Path:
    return Path(settings.BRAND_ASSETS_DIR)


@lru_cache(maxsize=16)
def _encode(path: Path) -> Optional[str]:
    if not path.is_file():
        logger.warning(f"Brand asset missing: {path}")
        return None
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    if path.suffix == ".svg":
        mime_type = "image/svg+xml"
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def asset_data_uri(filename: str) -> Optional[str]:
    """Return ``data:<mime>;base64,...`` for a brand asset, or ``None`` when absent."""
    return _encode(_assets_dir() / filename)


def logo_data_uri() -> Optional[str]:
    return asset_data_uri(LOGO)


def card_icon_data_uris() -> list[tuple[str, str]]:
    """(brand name, data URI) for every card icon present on disk."""
    icons = []
    for name, filename in CARD_ICONS:
        uri = asset_data_uri(filename)
        if uri:
            icons.append((name, uri))
    return icons
