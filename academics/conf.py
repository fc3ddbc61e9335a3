"""Accessors for the ``LMS`` settings dict."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings

DEFAULTS = {
    "CURRENT_TERM": None,
    "DEFAULT_COMPLETION_GRADE": Decimal("3.5"),
    "DEFAULT_REQUIRED_CREDITS": 120,
    "MIN_REQUIRED_CREDITS": 6,
    "CAPACITY_ALERT_THRESHOLD": 80,
    "METRICS_INTERVAL_SECONDS": 15,
    "METRICS_WARMUP_SECONDS": 5,
    "METRICS_CACHE_KEY": "academics:dashboard-metrics",
}


def lms_setting(name: str):
    """Return ``settings.LMS[name]``, falling back to the packaged default."""

    configured = getattr(settings, "LMS", {}) or {}
    if name in configured:
        return configured[name]
    return DEFAULTS[name]
