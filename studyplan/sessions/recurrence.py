"""Recurrence expansion for bulk session creation.

Turns one base draft and a RecurrenceRule into dated copies of the draft.
All arithmetic is in UTC. Expansion is capped at MAX_OCCURRENCES no matter
which end condition the rule selects.

Two strategies:
- weekly rules with explicit days_of_week walk Sunday-start week blocks and
  emit every selected weekday in each block
- everything else steps from the anchor by the rule's frequency and interval
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger

from studyplan.sessions.types import EndType, Frequency, RecurrenceRule, SessionDraft
from studyplan.utils.timestamps import format_timestamp, parse_timestamp, utcnow

MAX_OCCURRENCES = 365


def _roll_day(year: int, month: int, day: int, template: datetime) -> datetime:
    """Place day in (year, month), rolling into later months when it overflows.

    Day 31 of a 30-day month becomes the 1st of the next month, matching
    day-of-month arithmetic that carries instead of clamping.
    """
    first = template.replace(year=year, month=month, day=1)
    return first + timedelta(days=day - 1)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, carrying day overflow into the following month."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    return _roll_day(year, month, dt.day, dt)


def pin_day_of_month(dt: datetime, day_of_month: int) -> datetime:
    """Set the day of month, carrying overflow when the month is shorter."""
    return _roll_day(dt.year, dt.month, day_of_month, dt)


def sunday_week_start(dt: datetime) -> datetime:
    """Start of the Sunday-based week containing dt, keeping the time of day."""
    days_since_sunday = (dt.weekday() + 1) % 7
    return dt - timedelta(days=days_since_sunday)


class RecurrenceExpander:
    """Expands a draft into dated occurrences according to a RecurrenceRule."""

    def __init__(self, clock: Callable[[], datetime] = utcnow, max_occurrences: int = MAX_OCCURRENCES):
        self._clock = clock
        self._max_occurrences = max_occurrences

    def _anchor(self, base: SessionDraft) -> datetime:
        anchor = parse_timestamp(base.scheduled_for)
        if anchor is None:
            if base.scheduled_for:
                logger.warning(
                    "[RECURRENCE] Unparsable scheduled_for, anchoring at now",
                    scheduled_for=base.scheduled_for,
                )
            anchor = self._clock()
        return anchor

    def _reached_end(self, rule: RecurrenceRule, occurrence: datetime, emitted: int) -> bool:
        if rule.end_type == EndType.DATE and rule.end_date is not None and occurrence > rule.end_date:
            return True
        return rule.end_type == EndType.COUNT and rule.end_count is not None and emitted >= rule.end_count

    @staticmethod
    def _occurrence(base: SessionDraft, when: datetime) -> SessionDraft:
        return base.model_copy(update={"scheduled_for": format_timestamp(when)}, deep=True)

    def expand(self, base: SessionDraft, rule: RecurrenceRule) -> list[SessionDraft]:
        """Generate the dated occurrences of base under rule.

        Args:
            base: Draft to copy; its scheduled_for (or now) is the anchor
            rule: Recurrence rule

        Returns:
            Copies of base with scheduled_for set, in chronological order
        """
        anchor = self._anchor(base)
        if rule.frequency == Frequency.WEEKLY and rule.days_of_week:
            occurrences = self._expand_weekly_days(base, rule, anchor)
        else:
            occurrences = self._expand_stepped(base, rule, anchor)

        logger.debug(
            f"[RECURRENCE] Expanded into {len(occurrences)} occurrences",
            frequency=str(rule.frequency),
            interval=rule.interval,
            end_type=str(rule.end_type),
        )
        return occurrences

    def _expand_weekly_days(self, base: SessionDraft, rule: RecurrenceRule, anchor: datetime) -> list[SessionDraft]:
        """Walk blocks of `interval` weeks, emitting each selected weekday.

        Candidates earlier than the anchor are skipped. The end condition is
        checked before every individual emission, so a count limit never
        overshoots inside a block.
        """
        week_start = sunday_week_start(anchor)
        days = sorted(set(rule.days_of_week or []))
        occurrences: list[SessionDraft] = []

        block = 0
        while len(occurrences) < self._max_occurrences:
            for day in days:
                try:
                    candidate = week_start + timedelta(weeks=block * rule.interval, days=day)
                except OverflowError:
                    logger.warning("[RECURRENCE] Date range exhausted", emitted=len(occurrences))
                    return occurrences
                if candidate < anchor:
                    continue
                if self._reached_end(rule, candidate, len(occurrences)):
                    return occurrences
                occurrences.append(self._occurrence(base, candidate))
                if len(occurrences) >= self._max_occurrences:
                    return occurrences
            block += 1

        return occurrences

    @staticmethod
    def _advance(rule: RecurrenceRule, current: datetime) -> datetime:
        if rule.frequency == Frequency.DAILY:
            return current + timedelta(days=rule.interval)
        if rule.frequency == Frequency.WEEKLY:
            return current + timedelta(weeks=rule.interval)
        current = add_months(current, rule.interval)
        if rule.day_of_month is not None:
            current = pin_day_of_month(current, rule.day_of_month)
        return current

    def _expand_stepped(self, base: SessionDraft, rule: RecurrenceRule, anchor: datetime) -> list[SessionDraft]:
        """Step from the anchor: check the end condition, emit, then advance."""
        occurrences: list[SessionDraft] = []
        current = anchor

        while len(occurrences) < self._max_occurrences:
            if self._reached_end(rule, current, len(occurrences)):
                break
            occurrences.append(self._occurrence(base, current))

            try:
                current = self._advance(rule, current)
            except (OverflowError, ValueError):
                # Next step falls past the last representable date
                logger.warning("[RECURRENCE] Date range exhausted", emitted=len(occurrences))
                break

        return occurrences
