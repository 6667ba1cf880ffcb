"""Pick the primary output out of a heterogeneous Firecrawl payload."""
from typing import Any, Optional, Tuple

# Checked in this order; the first present, non-null key wins.
OUTPUT_KEYS: Tuple[str, ...] = ("output", "data", "result", "markdown", "content")


def extract_output(payload: Any) -> Any:
    """Return the best-effort primary output of an upstream payload.

    Args:
        payload: Decoded JSON from the Firecrawl API

    Returns:
        The value of the first of ``output``, ``data``, ``result``,
        ``markdown``, ``content`` that is present and not null. When none is
        present, the whole payload if it defines ``success``, else None.
        Non-dict payloads are returned unchanged.
    """
    if not isinstance(payload, dict):
        return payload

    for key in OUTPUT_KEYS:
        value = payload.get(key)
        if value is not None:
            return value

    if "success" in payload:
        return payload
    return None


def extract_credits(payload: Any) -> Optional[int]:
    """Return the credits an upstream call reported, if any."""
    if not isinstance(payload, dict):
        return None
    for key in ("creditsUsed", "credits_used"):
        value = payload.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None
