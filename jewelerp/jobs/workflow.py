"""
Job workflow map.

A job moves through ten fine-grained statuses; each status belongs to exactly
one of five coarse phases, which drive routing to the selection screens, the
progress tracker and the per-job contribution to an order's status.

Every table here is frozen at import time. This module is the only place that
derives a phase from a status: models, services, views, reports and the
integrity check command all call `phase_for_status`.
"""
from types import MappingProxyType
from typing import Optional


class UnmappedStatusError(ValueError):
    """A job status outside the known set; the row cannot be routed."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Job status {status!r} has no workflow phase")


class UnknownPhaseError(ValueError):
    def __init__(self, phase):
        self.phase = phase
        super().__init__(f"Unknown job phase {phase!r}")


class InvalidTransitionError(ValueError):
    """The requested step is not allowed from the job's current status."""


# Job statuses
STATUS_NEW = 'New'
STATUS_BAG_CREATED = 'Bag Created'
STATUS_STONE_SELECTED = 'Stone Selected'
STATUS_DIAMOND_SELECTED = 'Diamond Selected'
STATUS_SENT_TO_MANUFACTURER = 'Sent to Manufacturer'
STATUS_IN_PRODUCTION = 'In Production'
STATUS_RECEIVED_FROM_MANUFACTURER = 'Received from Manufacturer'
STATUS_QC_PASSED = 'QC Passed'
STATUS_QC_FAILED = 'QC Failed'
STATUS_COMPLETED = 'Completed'

JOB_STATUSES = (
    STATUS_NEW,
    STATUS_BAG_CREATED,
    STATUS_STONE_SELECTED,
    STATUS_DIAMOND_SELECTED,
    STATUS_SENT_TO_MANUFACTURER,
    STATUS_IN_PRODUCTION,
    STATUS_RECEIVED_FROM_MANUFACTURER,
    STATUS_QC_PASSED,
    STATUS_QC_FAILED,
    STATUS_COMPLETED,
)

JOB_STATUS_CHOICES = [(value, value) for value in JOB_STATUSES]

# Job phases
PHASE_STONE = 'stone'
PHASE_DIAMOND = 'diamond'
PHASE_MANUFACTURER = 'manufacturer'
PHASE_QC = 'qc'
PHASE_COMPLETE = 'complete'

JOB_PHASES = (PHASE_STONE, PHASE_DIAMOND, PHASE_MANUFACTURER, PHASE_QC, PHASE_COMPLETE)

# Order statuses
ORDER_STATUS_NEW = 'New'
ORDER_STATUS_PENDING = 'Pending'
ORDER_STATUS_COMPLETED = 'Completed'

ORDER_STATUSES = (ORDER_STATUS_NEW, ORDER_STATUS_PENDING, ORDER_STATUS_COMPLETED)

ORDER_STATUS_CHOICES = [(value, value) for value in ORDER_STATUSES]

STATUS_TO_PHASE = MappingProxyType({
    STATUS_NEW: PHASE_STONE,
    STATUS_BAG_CREATED: PHASE_STONE,
    STATUS_STONE_SELECTED: PHASE_DIAMOND,
    STATUS_DIAMOND_SELECTED: PHASE_MANUFACTURER,
    STATUS_SENT_TO_MANUFACTURER: PHASE_MANUFACTURER,
    STATUS_IN_PRODUCTION: PHASE_MANUFACTURER,
    STATUS_RECEIVED_FROM_MANUFACTURER: PHASE_QC,
    STATUS_QC_PASSED: PHASE_COMPLETE,
    # A failed piece goes back to the manufacturer for rework
    STATUS_QC_FAILED: PHASE_MANUFACTURER,
    STATUS_COMPLETED: PHASE_COMPLETE,
})

JOB_STATUS_TO_ORDER_STATUS = MappingProxyType({
    status: (
        ORDER_STATUS_NEW if status == STATUS_NEW
        else ORDER_STATUS_COMPLETED if status == STATUS_COMPLETED
        else ORDER_STATUS_PENDING
    )
    for status in JOB_STATUSES
})

PHASE_INFO = MappingProxyType({
    PHASE_STONE: MappingProxyType({
        'label': 'Stone Selection',
        'description': 'Select stones for the job',
        'color': '#F59E0B',
    }),
    PHASE_DIAMOND: MappingProxyType({
        'label': 'Diamond Selection',
        'description': 'Select diamonds for the job',
        'color': '#3B82F6',
    }),
    PHASE_MANUFACTURER: MappingProxyType({
        'label': 'Manufacturer',
        'description': 'Manage manufacturing process',
        'color': '#10B981',
    }),
    PHASE_QC: MappingProxyType({
        'label': 'Quality Check',
        'description': 'Perform quality check',
        'color': '#8B5CF6',
    }),
    PHASE_COMPLETE: MappingProxyType({
        'label': 'Complete',
        'description': 'Job completed',
        'color': '#6B7280',
    }),
})

# Badge label and color for every status
STATUS_INFO = MappingProxyType({
    STATUS_NEW: MappingProxyType({'label': 'New Job', 'color': 'bg-blue-400'}),
    STATUS_BAG_CREATED: MappingProxyType({'label': 'Bag Created', 'color': 'bg-[#6593F5]'}),
    STATUS_STONE_SELECTED: MappingProxyType({'label': 'Stone Selected', 'color': 'bg-indigo-500'}),
    STATUS_DIAMOND_SELECTED: MappingProxyType({'label': 'Diamond Selected', 'color': 'bg-purple-500'}),
    STATUS_SENT_TO_MANUFACTURER: MappingProxyType({'label': 'Sent to Manufacturer', 'color': 'bg-yellow-500'}),
    STATUS_IN_PRODUCTION: MappingProxyType({'label': 'In Production', 'color': 'bg-amber-500'}),
    STATUS_RECEIVED_FROM_MANUFACTURER: MappingProxyType({'label': 'Received from Manufacturer', 'color': 'bg-teal-500'}),
    STATUS_QC_PASSED: MappingProxyType({'label': 'Quality Check Passed', 'color': 'bg-orange-500'}),
    STATUS_QC_FAILED: MappingProxyType({'label': 'Quality Check Failed', 'color': 'bg-red-500'}),
    STATUS_COMPLETED: MappingProxyType({'label': 'Completed', 'color': 'bg-green-500'}),
})

# URL path segment of the screen that handles each phase
PHASE_ROUTE_SEGMENTS = MappingProxyType({
    PHASE_STONE: 'stone-selection',
    PHASE_DIAMOND: 'diamond-selection',
    PHASE_MANUFACTURER: 'manufacturer',
    PHASE_QC: 'quality-check',
    PHASE_COMPLETE: 'complete',
})

PHASE_TEAMS = MappingProxyType({
    PHASE_STONE: 'Stone Selection Team',
    PHASE_DIAMOND: 'Diamond Selection Team',
    PHASE_MANUFACTURER: 'Manufacturing Team',
    PHASE_QC: 'Quality Control Team',
    PHASE_COMPLETE: 'Delivery Team',
})

# Status a team picks its next job from
TEAM_QUEUE_STATUS = MappingProxyType({
    'bag': STATUS_NEW,
    'stone': STATUS_BAG_CREATED,
    'diamond': STATUS_STONE_SELECTED,
    'manufacturer': STATUS_DIAMOND_SELECTED,
    'qc': STATUS_RECEIVED_FROM_MANUFACTURER,
})

_NEXT_PHASE = MappingProxyType(dict(zip(JOB_PHASES, JOB_PHASES[1:] + (None,))))

_NEXT_STATUS = MappingProxyType({
    STATUS_NEW: STATUS_BAG_CREATED,
    STATUS_BAG_CREATED: STATUS_STONE_SELECTED,
    STATUS_STONE_SELECTED: STATUS_DIAMOND_SELECTED,
    STATUS_DIAMOND_SELECTED: STATUS_SENT_TO_MANUFACTURER,
    STATUS_SENT_TO_MANUFACTURER: STATUS_IN_PRODUCTION,
    STATUS_IN_PRODUCTION: STATUS_RECEIVED_FROM_MANUFACTURER,
    STATUS_QC_FAILED: STATUS_IN_PRODUCTION,
    STATUS_QC_PASSED: STATUS_COMPLETED,
})

# Statuses the manufacturer phase steps through on its own
_MANUFACTURER_STEPS = frozenset({STATUS_SENT_TO_MANUFACTURER, STATUS_IN_PRODUCTION, STATUS_QC_FAILED})


def phase_for_status(status) -> str:
    """Phase a job in `status` is in. Raises UnmappedStatusError for unknown values."""
    try:
        return STATUS_TO_PHASE[status]
    except (KeyError, TypeError):
        raise UnmappedStatusError(status) from None


def order_status_for_job_status(status) -> str:
    """Order status a single job in `status` stands for."""
    try:
        return JOB_STATUS_TO_ORDER_STATUS[status]
    except (KeyError, TypeError):
        raise UnmappedStatusError(status) from None


def phase_info(phase) -> dict:
    """Display metadata (label, description, color) for a phase."""
    try:
        return dict(PHASE_INFO[phase])
    except (KeyError, TypeError):
        raise UnknownPhaseError(phase) from None


def status_info(status) -> dict:
    try:
        return dict(STATUS_INFO[status])
    except (KeyError, TypeError):
        raise UnmappedStatusError(status) from None


def statuses_for_phase(phase) -> tuple:
    """All statuses that belong to `phase`, in workflow order."""
    if phase not in PHASE_INFO:
        raise UnknownPhaseError(phase)
    return tuple(status for status in JOB_STATUSES if STATUS_TO_PHASE[status] == phase)


def next_phase(phase) -> Optional[str]:
    if phase not in _NEXT_PHASE:
        raise UnknownPhaseError(phase)
    return _NEXT_PHASE[phase]


def next_status(status, passed=True) -> str:
    """
    Status a job moves to when the work for `status` is done.

    Quality check is the only branching step: `passed` chooses between
    QC Passed and QC Failed. A failed job returns to production.
    """
    phase_for_status(status)
    if status == STATUS_RECEIVED_FROM_MANUFACTURER:
        return STATUS_QC_PASSED if passed else STATUS_QC_FAILED
    if status not in _NEXT_STATUS:
        raise InvalidTransitionError(f"Job in status {status!r} has no further step")
    return _NEXT_STATUS[status]


def next_manufacturer_status(status) -> Optional[str]:
    """Next status inside the manufacturer phase, or None when the job leaves it."""
    phase_for_status(status)
    if status in _MANUFACTURER_STEPS:
        return _NEXT_STATUS[status]
    return None


def phase_route_segment(phase) -> str:
    if phase not in PHASE_ROUTE_SEGMENTS:
        raise UnknownPhaseError(phase)
    return PHASE_ROUTE_SEGMENTS[phase]


def job_route(order_id, job_id, status) -> str:
    """Path of the screen where a job in `status` is worked on."""
    segment = phase_route_segment(phase_for_status(status))
    return f"/orders/{order_id}/jobs/{job_id}/{segment}"


def queue_status_for_team(team) -> str:
    try:
        return TEAM_QUEUE_STATUS[team]
    except KeyError:
        raise ValueError(f"Unknown team {team!r}; expected one of {', '.join(TEAM_QUEUE_STATUS)}") from None
