"""Pure scheduling rules: availability, limits, walk-ins, lifecycle, queue."""

from .agenda import build_agenda
from .availability import compute_open_slots, intervals_overlap
from .booking_limits import check_booking_limits, ensure_can_book
from .queue import estimate_queue
from .shifting import plan_shift
from .state_machine import (
    apply_transition,
    available_actions,
    decide_transition,
    is_stale,
)
from .walk_in import find_walk_in_slot

__all__ = [
    "apply_transition",
    "available_actions",
    "build_agenda",
    "check_booking_limits",
    "compute_open_slots",
    "decide_transition",
    "ensure_can_book",
    "estimate_queue",
    "find_walk_in_slot",
    "intervals_overlap",
    "is_stale",
    "plan_shift",
]
