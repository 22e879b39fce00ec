"""
Appointment lifecycle as an explicit transition table.

Arrival and completion are both two-party checkpoints: the first party to
act moves the appointment into a single-party "initiated" state, the second
party (with either verb) moves it straight to the joint state. The table is
keyed by (status, action, role); anything missing is an invalid transition.

Decisions are pure: ``decide_transition`` returns the next status and a
timestamp patch, storage applies it.
"""

from datetime import datetime, timedelta
from typing import Dict, List, NamedTuple, Optional, Tuple

from config import settings
from models.appointment import (
    PRE_SERVICE_STATUSES,
    ActorRole,
    Appointment,
    AppointmentAction,
    AppointmentStatus,
    TransitionResult,
)
from utils.datetime_utils import ensure_aware
from utils.exceptions import (
    CancellationTooLateError,
    InvalidTransitionError,
    NoShowTooEarlyError,
)

S = AppointmentStatus
A = AppointmentAction
R = ActorRole


class Rule(NamedTuple):
    """Target status and the timestamps a transition stamps with `now`."""

    status: AppointmentStatus
    stamps: Tuple[str, ...] = ()


class Checkpoint(NamedTuple):
    """A lifecycle point both parties must acknowledge."""

    waiting: AppointmentStatus
    customer_first: AppointmentStatus
    barber_first: AppointmentStatus
    reached: AppointmentStatus
    initiate: AppointmentAction
    confirm: AppointmentAction
    customer_stamp: str
    barber_stamp: str
    reached_stamp: str


ARRIVAL = Checkpoint(
    waiting=S.UPCOMING,
    customer_first=S.CUSTOMER_INITIATED_CHECK_IN,
    barber_first=S.BARBER_INITIATED_CHECK_IN,
    reached=S.IN_PROGRESS,
    initiate=A.CHECK_IN,
    confirm=A.CONFIRM_START,
    customer_stamp="customer_checked_in_at",
    barber_stamp="barber_checked_in_at",
    reached_stamp="service_actually_started_at",
)

COMPLETION = Checkpoint(
    waiting=S.IN_PROGRESS,
    customer_first=S.CUSTOMER_INITIATED_COMPLETION,
    barber_first=S.BARBER_INITIATED_COMPLETION,
    reached=S.COMPLETED,
    initiate=A.MARK_DONE,
    confirm=A.CONFIRM_COMPLETION,
    customer_stamp="customer_marked_done_at",
    barber_stamp="barber_marked_done_at",
    reached_stamp="service_actually_completed_at",
)

TransitionTable = Dict[Tuple[AppointmentStatus, AppointmentAction, ActorRole], Rule]


def checkpoint_rules(checkpoint: Checkpoint) -> TransitionTable:
    """Expand a two-party checkpoint into transition table entries."""
    rules: TransitionTable = {
        (checkpoint.waiting, checkpoint.initiate, R.CUSTOMER): Rule(
            checkpoint.customer_first, (checkpoint.customer_stamp,)
        ),
        (checkpoint.waiting, checkpoint.initiate, R.BARBER): Rule(
            checkpoint.barber_first, (checkpoint.barber_stamp,)
        ),
    }
    # The second party completes the checkpoint with either verb
    for verb in (checkpoint.initiate, checkpoint.confirm):
        rules[(checkpoint.customer_first, verb, R.BARBER)] = Rule(
            checkpoint.reached, (checkpoint.barber_stamp, checkpoint.reached_stamp)
        )
        rules[(checkpoint.barber_first, verb, R.CUSTOMER)] = Rule(
            checkpoint.reached, (checkpoint.customer_stamp, checkpoint.reached_stamp)
        )
    return rules


# Every non-terminal status except in-progress
CANCELLABLE_STATUSES = PRE_SERVICE_STATUSES | {
    S.CUSTOMER_INITIATED_COMPLETION,
    S.BARBER_INITIATED_COMPLETION,
}

NO_SHOW_STATUSES = frozenset({S.UPCOMING, S.CUSTOMER_INITIATED_CHECK_IN})

STALE_STATUSES = frozenset({S.UPCOMING, S.CUSTOMER_INITIATED_CHECK_IN})


def build_transition_table() -> TransitionTable:
    """Transitions for appointments booked by a customer."""
    table: TransitionTable = {}
    table.update(checkpoint_rules(ARRIVAL))
    table.update(checkpoint_rules(COMPLETION))
    for status in CANCELLABLE_STATUSES:
        for role in ActorRole:
            table[(status, A.CANCEL, role)] = Rule(S.CANCELLED)
    for status in NO_SHOW_STATUSES:
        table[(status, A.MARK_NO_SHOW, R.BARBER)] = Rule(S.NO_SHOW, ("no_show_marked_at",))
    return table


TRANSITIONS: TransitionTable = build_transition_table()

# Walk-ins have no customer party: the barber finishes them alone
WALK_IN_TRANSITIONS: TransitionTable = {
    (S.IN_PROGRESS, A.MARK_DONE, R.BARBER): Rule(
        S.COMPLETED, ("barber_marked_done_at", "service_actually_completed_at")
    ),
}


def _table_for(appointment: Appointment) -> TransitionTable:
    return WALK_IN_TRANSITIONS if appointment.is_walk_in else TRANSITIONS


def fill_if_empty(current: Optional[datetime], value: datetime) -> datetime:
    """Set-once field semantics: keep the existing value when present."""
    return current if current is not None else value


def available_actions(appointment: Appointment, role: ActorRole) -> List[AppointmentAction]:
    """Actions the role may request from the current status, timing aside."""
    role = ActorRole(role)
    status = appointment.status_enum
    return [
        action
        for (rule_status, action, rule_role) in _table_for(appointment)
        if rule_status == status and rule_role == role
    ]


def decide_transition(
    appointment: Appointment,
    action: AppointmentAction,
    role: ActorRole,
    now: datetime,
    *,
    no_show_grace_minutes: Optional[int] = None,
    cancellation_lead_hours: Optional[float] = None,
) -> TransitionResult:
    """
    Decide the next status for an action without touching storage.

    Legality is checked before any timing rule.

    Raises:
        InvalidTransitionError: Action not legal from the current status for this role
        CancellationTooLateError: Cancelling inside the lead-time window
        NoShowTooEarlyError: No-show before the grace period has passed
    """
    action = AppointmentAction(action)
    role = ActorRole(role)
    status = appointment.status_enum

    rule = _table_for(appointment).get((status, action, role))
    if rule is None:
        raise InvalidTransitionError(
            f"Cannot {action.value} as {role.value} while appointment is {status.value}"
        )

    now = ensure_aware(now)
    scheduled_start = ensure_aware(appointment.appointment_timestamp)

    if action == A.CANCEL:
        lead_hours = (
            settings.min_cancellation_lead_hours
            if cancellation_lead_hours is None
            else cancellation_lead_hours
        )
        if scheduled_start - now < timedelta(hours=lead_hours):
            raise CancellationTooLateError(
                f"Appointments cannot be cancelled less than {lead_hours} hours "
                "before their start time."
            )

    if action == A.MARK_NO_SHOW:
        grace = (
            settings.no_show_grace_minutes
            if no_show_grace_minutes is None
            else no_show_grace_minutes
        )
        if now <= scheduled_start + timedelta(minutes=grace):
            raise NoShowTooEarlyError(
                f"A no-show can only be marked {grace} minutes after the start time."
            )

    timestamps = {
        field: now for field in rule.stamps if getattr(appointment, field) is None
    }
    return TransitionResult(
        previous_status=status,
        status=rule.status,
        timestamps=timestamps,
        updated_at=now,
    )


def apply_transition(appointment: Appointment, result: TransitionResult) -> Appointment:
    """Return a copy of the appointment with the transition applied."""
    update: Dict[str, object] = {
        "status": result.status,
        "updated_at": result.updated_at,
    }
    for field, value in result.timestamps.items():
        update[field] = fill_if_empty(getattr(appointment, field), value)
    return appointment.model_copy(update=update)


def is_stale(
    appointment: Appointment,
    now: datetime,
    threshold_minutes: Optional[int] = None,
) -> bool:
    """
    "Needs attention" flag for appointments still waiting after their start.

    Derived only; never written back.
    """
    if appointment.status_enum not in STALE_STATUSES:
        return False
    threshold = (
        settings.stale_threshold_minutes if threshold_minutes is None else threshold_minutes
    )
    start = ensure_aware(appointment.appointment_timestamp)
    return ensure_aware(now) > start + timedelta(minutes=threshold)
