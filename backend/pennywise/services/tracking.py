"""Email open/click tracking URLs and click target validation."""
import base64
import binascii
import logging
from urllib.parse import parse_qsl, unquote, urlencode, urlparse, urlunparse

from pennywise.config import CLICK_REDIRECT_PATH, OPEN_PIXEL_PATH

logger = logging.getLogger(__name__)

__all__ = [
    "CLICK_REDIRECT_PATH",
    "OPEN_PIXEL_PATH",
    "TRANSPARENT_GIF",
    "append_tracking_params",
    "resolve_click_target",
]

# 1x1 transparent GIF
TRANSPARENT_GIF = base64.b64decode("R0lGODlhAQABAPAAAP///wAAACH5BAAAAAAALAAAAAABAAEAAAICRAEAOw==")


def append_tracking_params(base: str, params: dict[str, str | None]) -> str:
    """Add params to the URL's query string, keeping any query it already has."""
    parsed = urlparse(base)
    query = parse_qsl(parsed.query, keep_blank_values=True)
    query.extend((key, value) for key, value in params.items() if value is not None)
    return urlunparse(parsed._replace(query=urlencode(query)))


def _decode_target(raw: str) -> str | None:
    trimmed = raw.strip()
    if not trimmed:
        return None

    decoded = unquote(trimmed)
    if decoded.lower().startswith(("http://", "https://")):
        return decoded

    try:
        padded = trimmed + "=" * (-len(trimmed) % 4)
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def resolve_click_target(raw: str | None, base_url: str) -> str:
    """Redirect target for a click: the decoded URL when it points at the app, else the app root.

    Targets are accepted as URL-encoded or base64 strings. Only http(s) URLs on
    the app's own host are followed.
    """
    if not raw:
        return base_url

    target = _decode_target(raw)
    if not target:
        return base_url

    parsed = urlparse(target)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return base_url
    if parsed.netloc.lower() != urlparse(base_url).netloc.lower():
        logger.debug(f"Refusing click redirect to foreign host {parsed.netloc}")
        return base_url
    return target
