"""Engine settings, read from settings.BOOKING_ENGINE with defaults."""

from __future__ import annotations

from typing import Any, Dict

from django.conf import settings  # type: ignore

DEFAULTS: Dict[str, Any] = {
    # Upper bound for a single availability or pricing read
    "STORE_TIMEOUT_MS": 3000,
    # How long a commit waits for a concurrent commit on the same unit
    "LOCK_TIMEOUT_MS": 1500,
    "SUGGESTION_WINDOW_DAYS": 90,
    "MAX_SUGGESTIONS": 3,
    "REFERENCE_ATTEMPTS": 5,
}


def engine_settings() -> Dict[str, Any]:
    configured = getattr(settings, "BOOKING_ENGINE", None) or {}
    unknown = set(configured) - set(DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown BOOKING_ENGINE setting(s): {', '.join(sorted(unknown))}")
    return {**DEFAULTS, **configured}
