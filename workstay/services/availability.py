"""Time-slot availability.

A requested stay ``[start, end]`` is available when some OPEN slot fully
contains it: ``slot.start <= start`` and ``slot.end >= end``. Partial overlap
does not count.

``is_date_range_available`` is the in-process check used at admission time;
``slot_containment_filter`` is the same rule expressed as a MongoDB
predicate for search. Change both together.
"""

from collections.abc import Iterable
from datetime import date

from workstay.models.opportunity import Opportunity, TimeSlot, TimeSlotStatus


def _covers(slot: TimeSlot, requested_start: date, requested_end: date) -> bool:
    return (
        slot.status == TimeSlotStatus.OPEN
        and slot.start_date <= requested_start
        and slot.end_date >= requested_end
    )


def find_covering_slot(
    slots: Iterable[TimeSlot],
    requested_start: date,
    requested_end: date,
) -> TimeSlot | None:
    """Return the first OPEN slot that fully contains the requested range."""
    for slot in slots:
        if _covers(slot, requested_start, requested_end):
            return slot
    return None


def is_date_range_available(
    slots: Iterable[TimeSlot],
    requested_start: date,
    requested_end: date,
) -> bool:
    return find_covering_slot(slots, requested_start, requested_end) is not None


def requires_slot_check(opportunity: Opportunity) -> bool:
    """Opportunities without time slots accept any dates."""
    return opportunity.has_time_slots


def effective_capacity(slot: TimeSlot, start: date, end: date) -> int:
    """Smallest capacity in force anywhere inside ``[start, end]``.

    Overrides apply to the part of the window they overlap; the tightest one
    wins.
    """
    capacity = slot.default_capacity
    for override in slot.capacity_overrides:
        if override.start_date <= end and override.end_date >= start:
            capacity = min(capacity, override.capacity)
    return capacity


def remaining_capacity(slot: TimeSlot, start: date, end: date) -> int:
    return max(0, effective_capacity(slot, start, end) - slot.confirmed_count)


def slot_containment_filter(requested_start: date, requested_end: date) -> dict:
    """MongoDB ``timeSlots`` predicate matching ``is_date_range_available``."""
    return {
        "$elemMatch": {
            "status": TimeSlotStatus.OPEN.value,
            "startDate": {"$lte": requested_start.isoformat()},
            "endDate": {"$gte": requested_end.isoformat()},
        }
    }
