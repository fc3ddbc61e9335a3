"""Academic term labels such as "Fall 2025".

Terms are stored on enrollments as plain labels. This module is the single
place that parses them, orders them and decides which one is current.
"""
from __future__ import annotations

import datetime
from typing import NamedTuple

from django.db import models
from django.utils import timezone

from .conf import lms_setting

SEASON_ORDER = {
    "winter": 1,
    "spring": 2,
    "summer": 3,
    "fall": 4,
}


class InvalidTerm(ValueError):
    pass


class TermPhase(models.TextChoices):
    PAST = "past", "Past"
    CURRENT = "current", "Current"
    FUTURE = "future", "Future"


class Term(NamedTuple):
    season: str
    year: int

    @property
    def label(self) -> str:
        return f"{self.season} {self.year}"

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, SEASON_ORDER[self.season.lower()])

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return self.label


def parse_term(label: str) -> Term:
    """Parse ``"<Season> <Year>"`` into a :class:`Term`.

    Season matching is case-insensitive; the returned season is capitalised.
    """

    parts = (label or "").split()
    if len(parts) != 2:
        raise InvalidTerm(f"Term must look like 'Fall 2025', got {label!r}.")
    season, year = parts
    if season.lower() not in SEASON_ORDER:
        raise InvalidTerm(f"Unknown season {season!r} in term {label!r}.")
    if not year.isdigit() or len(year) != 4:
        raise InvalidTerm(f"Term year must be a four-digit number, got {year!r}.")
    return Term(season.capitalize(), int(year))


def normalize_term(label: str) -> str:
    return parse_term(label).label


def term_sort_key(label: str):
    """Chronological key; unparseable labels sort last, alphabetically."""

    try:
        term = parse_term(label)
    except InvalidTerm:
        return (1, 0, 0, label or "")
    year, season = term.sort_key
    return (0, year, season, "")


def term_for_date(day: datetime.date) -> Term:
    if day.month <= 4:
        return Term("Spring", day.year)
    if day.month <= 8:
        return Term("Summer", day.year)
    return Term("Fall", day.year)


def current_term(today: datetime.date | None = None) -> str:
    configured = lms_setting("CURRENT_TERM")
    if configured:
        return normalize_term(configured)
    return term_for_date(today or timezone.localdate()).label


def classify_term(label: str, today: datetime.date | None = None) -> TermPhase:
    term = parse_term(label)
    current = parse_term(current_term(today))
    if term.sort_key == current.sort_key:
        return TermPhase.CURRENT
    if term.sort_key < current.sort_key:
        return TermPhase.PAST
    return TermPhase.FUTURE


def is_current_term(label: str, today: datetime.date | None = None) -> bool:
    try:
        return classify_term(label, today) == TermPhase.CURRENT
    except InvalidTerm:
        return False
