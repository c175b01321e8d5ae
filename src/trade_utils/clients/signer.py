import hashlib
import hmac
import re
import time

from trade_utils.clients.errors import SigningError

Params = list[tuple[str, str]]

_URL_SAFE = re.compile(r"[A-Za-z0-9._~-]+")


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def ensure_url_safe(params: Params) -> None:
    """Reject keys or values that would need percent-encoding, e.g. "&", "=" or spaces"""
    for key, value in params:
        if not _URL_SAFE.fullmatch(key) or not _URL_SAFE.fullmatch(value):
            raise ValueError(f"Query parameter {key}={value!r} contains characters that are not URL-safe")


def to_query_string(params: Params) -> str:
    """Join params in order, without percent-encoding, exactly as they are signed.

    Keys and values must already be URL-safe; see ``ensure_url_safe``.
    """
    return "&".join(f"{key}={value}" for key, value in params)


def sign(params: Params, secret: str, timestamp: int | None = None) -> tuple[int, str]:
    """Sign ``params`` in place with HMAC-SHA256.

    The payload is every ``key=value&`` pair in the given order followed by
    ``timestamp=<ms>``. On return ``params`` ends with the ``timestamp`` and
    ``signature`` entries, signature last, and the same timestamp value is
    returned alongside the hex digest.
    """
    if not isinstance(secret, str) or not secret:
        raise SigningError("API secret is empty or not a string")
    try:
        secret_key = secret.encode("utf-8")
    except UnicodeEncodeError as e:
        raise SigningError("API secret is not valid UTF-8") from e

    if timestamp is None:
        timestamp = current_timestamp_ms()

    payload = "".join(f"{key}={value}&" for key, value in params) + f"timestamp={timestamp}"
    signature = hmac.new(secret_key, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    params.append(("timestamp", str(timestamp)))
    params.append(("signature", signature))
    return timestamp, signature
