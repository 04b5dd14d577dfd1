# File: cadence/processors/event_processor.py
"""
Event lifecycle module for Cadence.
Saves drafts, renders virtual occurrences of recurring series, and applies
scoped edits and deletes.

Every operation returns new records and leaves its inputs untouched;
persisting the results is the caller's job.
"""

from dataclasses import fields, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from cadence.core.config_manager import Config
from cadence.core.expander import expand_from, require_valid
from cadence.models import (
    EditResult,
    EditScope,
    EventRecord,
    After,
    DetachedInstance,
    Draft,
    NO_RECURRENCE,
    OccurrenceInstance,
    On,
    RecurringParent,
    ScopeRequiredError,
    Standalone,
    is_recurring,
    localize,
    rule_from_dict,
    with_terminator,
)
from cadence.utils.logger import LoggerMixin

# Fields a caller may not change through an edit
PROTECTED_FIELDS = {'id', 'kind', 'excluded_dates', 'series_anchor'}
EDITABLE_FIELDS = {f.name for f in fields(EventRecord)} - PROTECTED_FIELDS


class EventLifecycle(LoggerMixin):
    """Owns the Draft -> Saved transitions and recurring edit/delete semantics."""

    def __init__(self, max_occurrences: int = Config.MAX_OCCURRENCES):
        """
        Initialize the lifecycle.

        Args:
            max_occurrences: Upper bound on occurrences expanded per series
        """
        if max_occurrences < 1:
            raise ValueError(f"max_occurrences must be at least 1, got {max_occurrences}")
        self.max_occurrences = max_occurrences

    # ==================== Saving ====================

    def save(self, draft: EventRecord, event_id: str) -> EventRecord:
        """
        Save a draft as a standalone event or a recurring parent.

        Raises:
            InvalidRecurrenceRule: if the draft's rule is invalid
            ValueError: if the record is already saved or the id is empty
        """
        if draft.is_saved():
            raise ValueError(f"Event {draft.id!r} is already saved")
        if not event_id:
            raise ValueError("An event id is required to save")

        require_valid(draft.recurrence)
        kind = RecurringParent() if draft.is_recurring() else Standalone()
        saved = replace(draft, id=event_id, kind=kind)
        self.logger.info(f"Saved event {event_id} '{saved.title}' as {type(kind).__name__}")
        return saved

    # ==================== Rendering ====================

    def occurrence_dates(self, record: EventRecord) -> List[date]:
        """Dates on which a saved record appears, excluded dates removed."""
        return [d for d in self._series(record) if d not in record.excluded_dates]

    def _series(self, record: EventRecord) -> List[date]:
        """Every date of the record, excluded ones included, in series order."""
        if isinstance(record.kind, RecurringParent):
            return expand_from(record.recurrence, record.rule_anchor, record.anchor_date, self.max_occurrences)
        return [record.anchor_date]

    def render(self, record: EventRecord, window_start: date, window_end: date) -> List[OccurrenceInstance]:
        """
        Virtual instances of a saved record inside [window_start, window_end].

        Instance ids and indexes follow the series position, so they stay
        stable when other occurrences are excluded.
        """
        if window_end < window_start:
            raise ValueError(f"Window end {window_end} is before window start {window_start}")
        if isinstance(record.kind, Draft):
            raise ValueError(f"Draft event '{record.title}' has no occurrences to render")

        instances = []
        for index, day in enumerate(self._series(record)):
            if day > window_end:
                break
            if day < window_start or day in record.excluded_dates:
                continue
            instances.append(self._instance(record, index, day))

        self.logger.debug(
            f"Rendered {len(instances)} instance(s) of {record.id} between {window_start} and {window_end}"
        )
        return instances

    def _instance(self, record: EventRecord, index: int, day: date) -> OccurrenceInstance:
        if record.all_day:
            span_days = (record.end_time.date() - record.start_time.date()).days + 1
            start = localize(record.timezone, datetime.combine(day, time.min))
            end = localize(record.timezone, datetime.combine(day + timedelta(days=span_days), time.min))
        else:
            wall_start = datetime.combine(day, record.start_time.time())
            start = localize(record.timezone, wall_start)
            end = localize(record.timezone, wall_start + record.duration)

        is_series = isinstance(record.kind, RecurringParent)
        return OccurrenceInstance(
            id=f"{record.id}_instance_{index}" if is_series else record.id,
            parent_id=record.kind.parent_id if isinstance(record.kind, DetachedInstance) else record.id,
            index=index,
            occurrence_date=day,
            start=start,
            end=end,
            title=record.title,
            all_day=record.all_day,
        )

    # ==================== Helpers ====================

    def _require_scope(self, scope: Any) -> EditScope:
        if not isinstance(scope, EditScope):
            raise ScopeRequiredError(
                "Edits to a recurring event need an explicit scope: "
                "EditScope.THIS_OCCURRENCE or EditScope.THIS_AND_FOLLOWING"
            )
        return scope

    def _require_parent(self, record: EventRecord) -> None:
        if not isinstance(record.kind, RecurringParent):
            raise ValueError(f"Event {record.id!r} is not a recurring series")

    def _locate(self, parent: EventRecord, occurrence_date: date) -> int:
        """Series index of an occurrence that is still shown."""
        if occurrence_date in parent.excluded_dates:
            raise ValueError(f"{occurrence_date} was already removed from series {parent.id!r}")
        try:
            return self._series(parent).index(occurrence_date)
        except ValueError:
            raise ValueError(f"{occurrence_date} is not an occurrence of series {parent.id!r}")

    def _apply(self, record: EventRecord, changes: Dict[str, Any]) -> EventRecord:
        """
        Copy of `record` with `changes` applied.

        A saved standalone or series record follows its new rule: a recurring
        rule makes it a series, NO_RECURRENCE makes it standalone.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        if 'timezone' in changes and changes['timezone'] != record.timezone:
            raise ValueError(f"The timezone of event {record.id!r} cannot change after creation")

        merged = dict(changes)
        if 'recurrence' in merged:
            rule = merged['recurrence']
            if rule is None or isinstance(rule, (str, dict)):
                rule = rule_from_dict(rule)
            require_valid(rule)
            merged['recurrence'] = rule
            if isinstance(record.kind, (Standalone, RecurringParent)):
                if is_recurring(rule):
                    merged['kind'] = RecurringParent()
                else:
                    merged['kind'] = Standalone()
                    merged['excluded_dates'] = frozenset()

        # A series anchor survives only while the rule and first date stay put
        updated = replace(record, **merged, series_anchor=None)
        if updated.recurrence == record.recurrence and updated.anchor_date == record.anchor_date:
            updated = replace(updated, series_anchor=record.series_anchor)
        return updated

    def _truncate(self, parent: EventRecord, occurrence_date: date) -> EventRecord:
        """Series ending the day before `occurrence_date`."""
        last_day = occurrence_date - timedelta(days=1)
        return replace(
            parent,
            recurrence=with_terminator(parent.recurrence, On(last_day)),
            excluded_dates=frozenset(d for d in parent.excluded_dates if d <= last_day),
        )

    def _moved_to(self, record: EventRecord, occurrence_date: date) -> EventRecord:
        wall_start = datetime.combine(occurrence_date, record.start_time.time())
        return replace(record, start_time=wall_start, end_time=wall_start + record.duration)

    # ==================== Scoped edits ====================

    def edit_occurrence(
        self,
        parent: EventRecord,
        occurrence_date: date,
        changes: Dict[str, Any],
        scope: EditScope,
        new_id: str,
    ) -> EditResult:
        """
        Edit one occurrence of a series, or it and every later one.

        Args:
            parent: Saved recurring parent
            occurrence_date: Occurrence the user picked
            changes: EventRecord field names mapped to new values
            scope: Explicit EditScope; there is no default
            new_id: Id for the record split off the series

        Returns:
            EditResult with the updated parent and the detached instance or
            new series (created is None when the whole series was rewritten)

        Raises:
            ScopeRequiredError: if scope is not an EditScope
        """
        scope = self._require_scope(scope)
        self._require_parent(parent)
        index = self._locate(parent, occurrence_date)

        if scope is EditScope.THIS_OCCURRENCE:
            detached = replace(
                self._moved_to(parent, occurrence_date),
                id=new_id,
                recurrence=NO_RECURRENCE,
                kind=DetachedInstance(parent_id=parent.id, original_date=occurrence_date),
                excluded_dates=frozenset(),
                series_anchor=None,
            )
            detached = self._apply(detached, changes)
            updated = replace(parent, excluded_dates=parent.excluded_dates | {occurrence_date})
            self.logger.info(f"Detached {occurrence_date} of series {parent.id} as {new_id}")
            return EditResult(parent=updated, created=detached)

        if index == 0:
            rewritten = self._apply(parent, changes)
            self.logger.info(f"Edited every occurrence of series {parent.id}")
            return EditResult(parent=rewritten)

        following_rule = parent.recurrence
        if isinstance(parent.recurrence.terminator, After):
            following_rule = with_terminator(following_rule, After(parent.recurrence.terminator.occurrences - index))

        following = replace(
            self._moved_to(parent, occurrence_date),
            id=new_id,
            recurrence=following_rule,
            excluded_dates=frozenset(d for d in parent.excluded_dates if d > occurrence_date),
            series_anchor=parent.rule_anchor,
        )
        following = self._apply(following, changes)
        truncated = self._truncate(parent, occurrence_date)
        self.logger.info(f"Split series {parent.id} at {occurrence_date}; following occurrences are {new_id}")
        return EditResult(parent=truncated, created=following)

    def delete_occurrence(
        self,
        parent: EventRecord,
        occurrence_date: date,
        scope: EditScope,
    ) -> Optional[EventRecord]:
        """
        Delete one occurrence of a series, or it and every later one.

        Returns:
            The updated parent, or None when the whole series is gone

        Raises:
            ScopeRequiredError: if scope is not an EditScope
        """
        scope = self._require_scope(scope)
        self._require_parent(parent)
        index = self._locate(parent, occurrence_date)

        if scope is EditScope.THIS_OCCURRENCE:
            self.logger.info(f"Removed {occurrence_date} from series {parent.id}")
            return replace(parent, excluded_dates=parent.excluded_dates | {occurrence_date})

        if index == 0:
            self.logger.info(f"Deleted series {parent.id}")
            return None

        self.logger.info(f"Ended series {parent.id} before {occurrence_date}")
        return self._truncate(parent, occurrence_date)

    # ==================== Non-series records ====================

    def update(self, record: EventRecord, changes: Dict[str, Any]) -> EventRecord:
        """
        Edit a draft, standalone event or detached instance.

        A standalone event given a recurring rule becomes a recurring parent.
        """
        if isinstance(record.kind, RecurringParent):
            raise ScopeRequiredError(f"Event {record.id!r} is a series; use edit_occurrence with a scope")

        updated = self._apply(record, changes)
        self.logger.info(f"Updated event {record.id}: {', '.join(sorted(changes)) or 'no changes'}")
        return updated

    def delete(self, record: EventRecord) -> None:
        """
        Confirm deletion of a non-series record.

        Series are only removed through delete_occurrence so the caller
        always states a scope.
        """
        if isinstance(record.kind, RecurringParent):
            raise ScopeRequiredError(f"Event {record.id!r} is a series; use delete_occurrence with a scope")
        self.logger.info(f"Deleted event {record.id}")
