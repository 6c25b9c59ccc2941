from __future__ import annotations

import asyncio
import base64
import binascii
import ipaddress
import logging
import socket
from io import BytesIO
from typing import Optional
from urllib.parse import unquote_to_bytes, urlsplit

import httpx
from PIL import Image, UnidentifiedImageError

from config import LOGO_FETCH_TIMEOUT, MAX_LOGO_BYTES
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}
MAX_LOGO_URL_LENGTH = 2048


def decode_data_uri(uri: str) -> bytes:
    """Returns the payload of a data: URI (base64 or percent-encoded)."""
    header, sep, payload = uri.partition(",")
    if not header.startswith("data:") or not sep:
        raise ValueError("not a data URI")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=False)
    return unquote_to_bytes(payload)


def _data_uri_media(uri: str) -> str:
    header = uri.partition(",")[0][len("data:"):]
    return header.split(";")[0].strip().lower()


def logo_to_data_uri(raw: bytes, content_type: Optional[str]) -> str:
    """Uploaded logo file → data URI stored inside the style descriptor."""
    media = (content_type or "").split(";")[0].strip().lower() or "image/png"
    if media not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(f"Unsupported logo type: {media}")
    if not raw:
        raise ValidationError("Logo file is empty")
    if len(raw) > MAX_LOGO_BYTES:
        raise ValidationError("Logo file is too large")
    return f"data:{media};base64,{base64.b64encode(raw).decode('ascii')}"


def validate_logo_source(source_uri: object) -> str:
    """Checks a logo value set through the editor: image data URI or http(s) URL."""
    if not isinstance(source_uri, str):
        raise ValidationError("Logo must be a data URI or an http(s) URL")

    if source_uri.startswith("data:"):
        if _data_uri_media(source_uri) not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Unsupported logo type: {_data_uri_media(source_uri) or 'unknown'}")
        try:
            payload = decode_data_uri(source_uri)
        except (ValueError, binascii.Error) as e:
            raise ValidationError("Logo data URI cannot be decoded") from e
        if len(payload) > MAX_LOGO_BYTES:
            raise ValidationError("Logo file is too large")
        return source_uri

    if len(source_uri) > MAX_LOGO_URL_LENGTH:
        raise ValidationError("Logo URL is too long")
    parts = urlsplit(source_uri)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValidationError("Logo must be a data URI or an http(s) URL")
    return source_uri


# ─────────────────────────────────────────────
# 🌐 Remote-Logos
# ─────────────────────────────────────────────
def _is_public(address: str) -> bool:
    ip = ipaddress.ip_address(address.split("%")[0])
    return ip.is_global and not ip.is_multicast


async def ensure_public_host(url: str) -> None:
    """Refuses non-http(s) URLs and hosts resolving to private, loopback or reserved addresses."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"logo URL not allowed: {url}")

    host = parts.hostname
    try:
        addresses = [str(ipaddress.ip_address(host))]
    except ValueError:
        try:
            infos = await asyncio.to_thread(socket.getaddrinfo, host, parts.port or 443)
        except socket.gaierror as e:
            raise ValueError(f"logo host cannot be resolved: {host}") from e
        addresses = [info[4][0] for info in infos]

    if not addresses or not all(_is_public(address) for address in addresses):
        raise ValueError(f"logo host not allowed: {host}")


async def fetch_logo_bytes(source_uri: str, client: Optional[httpx.AsyncClient] = None) -> bytes:
    if source_uri.startswith("data:"):
        raw = decode_data_uri(source_uri)
        if len(raw) > MAX_LOGO_BYTES:
            raise ValueError("logo exceeds size limit")
        return raw

    await ensure_public_host(source_uri)

    # Remote-Logos ohne Cookies/Credentials und ohne Weiterleitungen laden
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=LOGO_FETCH_TIMEOUT, follow_redirects=False)
    try:
        async with client.stream("GET", source_uri) as response:
            response.raise_for_status()
            buffer = bytearray()
            async for chunk in response.aiter_bytes():
                buffer.extend(chunk)
                if len(buffer) > MAX_LOGO_BYTES:
                    raise ValueError("logo exceeds size limit")
            return bytes(buffer)
    finally:
        if owns_client:
            await client.aclose()


async def load_logo(source_uri: str, client: Optional[httpx.AsyncClient] = None) -> Optional[Image.Image]:
    """
    Loads a logo for rendering. A logo that cannot be loaded is skipped with a
    warning; the QR code is still rendered.
    """
    try:
        raw = await fetch_logo_bytes(source_uri, client)
        image = Image.open(BytesIO(raw))
        image.load()
        return image.convert("RGBA")
    except (httpx.HTTPError, ValueError, binascii.Error, UnidentifiedImageError, OSError) as e:
        logger.warning(f"⚠️ Logo konnte nicht geladen werden: {e}")
        return None
