# rad_core/common/security.py
from __future__ import annotations

import hmac


def secret_matches(provided: str | None, expected: str | None) -> bool:
    """
    Constant-time comparison for static shared secrets (API keys).

    An unset expected secret never matches, so an unconfigured key disables
    the endpoint instead of opening it.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
