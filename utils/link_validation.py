# utils/link_validation.py
"""
Prüfungen für Link-Eingaben. Sie laufen immer vor dem ersten Backend-Aufruf.
"""

from typing import Optional
from urllib.parse import urlsplit

from config import SHORT_LINK_BASE_URL
from utils.errors import ValidationError


def validate_link_id(link_id: Optional[str]) -> Optional[str]:
    """Leere ID = Backend vergibt eine. Ein "/" ist nie erlaubt."""
    if link_id is None:
        return None
    link_id = link_id.strip()
    if "/" in link_id:
        raise ValidationError('linkid cannot include "/"')
    return link_id or None


def validate_content_url(content: Optional[str]) -> str:
    """Ziel-URL muss absolut sein und http:// oder https:// verwenden."""
    value = (content or "").strip()
    try:
        parts = urlsplit(value)
    except ValueError:
        raise ValidationError("Invalid URL")
    if not parts.scheme or not parts.netloc:
        raise ValidationError("Invalid URL")
    if parts.scheme.lower() not in ("http", "https"):
        raise ValidationError("URL must start with http:// or https://")
    return value


def short_url(link_id: str, base_url: str = SHORT_LINK_BASE_URL) -> str:
    """Kurzlink, der im QR-Code kodiert wird."""
    return f"{base_url.rstrip('/')}/{link_id}"
