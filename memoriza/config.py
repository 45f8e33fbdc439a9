import os

DEFAULT_UPSTREAM_URL = "http://localhost:8080"
DEFAULT_UPSTREAM_TIMEOUT = 120.0
API_PREFIX = "/api/v1"

_TRUTHY = {"1", "true", "yes"}


def get_upstream_url() -> str:
    """Return the upstream host (no trailing slash, no API prefix)."""
    url = os.environ.get("UPSTREAM_URL", "").strip()
    return (url or DEFAULT_UPSTREAM_URL).rstrip("/")


def get_api_base_url() -> str:
    return f"{get_upstream_url()}{API_PREFIX}"


def use_upstream() -> bool:
    """Whether the fallback generate route forwards to the upstream."""
    return os.environ.get("USE_UPSTREAM", "").strip().lower() in _TRUTHY


def get_upstream_timeout() -> float:
    raw = os.environ.get("UPSTREAM_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_UPSTREAM_TIMEOUT
    try:
        return float(raw)
    except ValueError as err:
        raise RuntimeError(f"UPSTREAM_TIMEOUT must be a number, got {raw!r}") from err
