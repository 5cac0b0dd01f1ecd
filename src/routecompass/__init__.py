from .assignments import AssignmentRegistry, AssignmentResolver, resolve_agent
from .calendar_logic import add_months_clamped, generate_occurrences, iso_weekday, iterate_days
from .exceptions import DuplicateVisitError, InvalidRuleError, InvertedRangeError, RouteCompassError
from .models import (
    UNASSIGNED, FrequencyKind, RecurrenceRule, RouteAgentAssignment, RouteCustomer, Visit,
    VisitOutcome, VisitSchedule,
)
from .reconcile import reconcile
from .service import ScheduleService

__version__ = "0.1.0"
