from dataclasses import dataclass, field, replace as dc_replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .exceptions import InvalidRuleError, InvertedRangeError


class FrequencyKind(str, Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    CUSTOM = 'custom'


class VisitOutcome(str, Enum):
    PENDING = 'pending'
    SUCCESSFUL = 'successful'
    UNSUCCESSFUL = 'unsuccessful'
    RESCHEDULED = 'rescheduled'
    CANCELLED = 'cancelled'


class _Unassigned:
    """Ergebnis der Agenten-Auflösung, wenn keine Zuweisung passt."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'UNASSIGNED'


UNASSIGNED = _Unassigned()


def _as_date(value, name: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            raise InvalidRuleError(f"{name}: ungültiges Datum {value!r}")
    raise InvalidRuleError(f"{name}: ungültiges Datum {value!r}")


def _int_code(value, name: str, lo: int, hi: int) -> int:
    """Nur echte ganze Zahlen lo..hi; bool, float und Strings werden abgelehnt."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRuleError(f"{name}: ganze Zahl erwartet, nicht {value!r}")
    if not lo <= value <= hi:
        raise InvalidRuleError(f"{name} muss {lo}..{hi} sein, nicht {value}", {name: value})
    return value


def _weekday_set(values: Optional[Iterable[int]], name: str) -> FrozenSet[int]:
    return frozenset(_int_code(v, name, 1, 7) for v in (values or ()))


@dataclass(frozen=True)
class RecurrenceRule:
    """
    Unveränderliche Wiederholungsregel eines Besuchsplans.

    Welche Felder gesetzt sein dürfen, hängt von `frequency_kind` ab:
      - DAILY:   weder weekday_set noch day_of_month
      - WEEKLY:  weekday_set (nicht leer), kein day_of_month
      - MONTHLY: day_of_month (1..31), keine Wochentage
      - CUSTOM:  weekday_set (nicht leer), interval_count wird ignoriert
    Ungültige Kombinationen werfen beim Erzeugen InvalidRuleError.
    Änderungen nur über `replace()`, das die komplette Regel neu prüft.
    """
    frequency_kind: FrequencyKind
    start_date: date
    interval_count: int = 1
    weekday_set: FrozenSet[int] = frozenset()
    day_of_month: Optional[int] = None
    end_date: Optional[date] = None
    excluded_dates: FrozenSet[date] = frozenset()

    def __post_init__(self):
        try:
            kind = FrequencyKind(self.frequency_kind)
        except ValueError:
            raise InvalidRuleError(f"Unbekannte Frequenz {self.frequency_kind!r}")
        start = _as_date(self.start_date, 'start_date')
        if start is None:
            raise InvalidRuleError("start_date ist Pflicht")
        end = _as_date(self.end_date, 'end_date')
        weekdays = _weekday_set(self.weekday_set, 'weekday_set')
        excluded = frozenset(_as_date(d, 'excluded_dates') for d in (self.excluded_dates or ()))

        # frozen dataclass: normalisierte Werte direkt setzen
        object.__setattr__(self, 'frequency_kind', kind)
        object.__setattr__(self, 'start_date', start)
        object.__setattr__(self, 'end_date', end)
        object.__setattr__(self, 'weekday_set', weekdays)
        object.__setattr__(self, 'excluded_dates', excluded)

        if isinstance(self.interval_count, bool) or not isinstance(self.interval_count, int) \
                or self.interval_count < 1:
            raise InvalidRuleError(f"interval_count muss >= 1 sein, nicht {self.interval_count!r}")

        if kind in (FrequencyKind.WEEKLY, FrequencyKind.CUSTOM):
            if not weekdays:
                raise InvalidRuleError(f"{kind.value}: weekday_set darf nicht leer sein")
            if self.day_of_month is not None:
                raise InvalidRuleError(f"{kind.value}: day_of_month ist nicht erlaubt")
        elif kind == FrequencyKind.MONTHLY:
            if weekdays:
                raise InvalidRuleError("monthly: weekday_set muss leer sein")
            if self.day_of_month is None:
                raise InvalidRuleError("monthly: day_of_month ist Pflicht")
            _int_code(self.day_of_month, 'day_of_month', 1, 31)
        else:
            if weekdays:
                raise InvalidRuleError("daily: weekday_set muss leer sein")
            if self.day_of_month is not None:
                raise InvalidRuleError("daily: day_of_month ist nicht erlaubt")

        if end is not None and start > end:
            raise InvertedRangeError(start, end, 'RecurrenceRule')

    # Konstruktoren
    @classmethod
    def daily(cls, start_date, interval_count=1, **kw) -> 'RecurrenceRule':
        return cls(FrequencyKind.DAILY, start_date, interval_count, **kw)

    @classmethod
    def weekly(cls, start_date, weekdays, interval_count=1, **kw) -> 'RecurrenceRule':
        return cls(FrequencyKind.WEEKLY, start_date, interval_count, frozenset(weekdays), **kw)

    @classmethod
    def monthly(cls, start_date, day_of_month, interval_count=1, **kw) -> 'RecurrenceRule':
        return cls(FrequencyKind.MONTHLY, start_date, interval_count, day_of_month=day_of_month, **kw)

    @classmethod
    def custom(cls, start_date, weekdays, **kw) -> 'RecurrenceRule':
        return cls(FrequencyKind.CUSTOM, start_date, 1, frozenset(weekdays), **kw)

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> 'RecurrenceRule':
        """Aus einer gespeicherten Zeile (Spaltennamen wie in visit_schedules)."""
        return cls(
            frequency_kind=rec['frequency_type'],
            start_date=rec['start_date'],
            interval_count=int(rec.get('frequency_value') or 1),
            weekday_set=frozenset(rec.get('days_of_week') or ()),
            day_of_month=rec.get('day_of_month'),
            end_date=rec.get('end_date'),
            excluded_dates=frozenset(rec.get('exclude_dates') or ()),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'frequency_type': self.frequency_kind.value,
            'frequency_value': self.interval_count,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'days_of_week': sorted(self.weekday_set),
            'day_of_month': self.day_of_month,
            'exclude_dates': sorted(d.isoformat() for d in self.excluded_dates),
        }

    def replace(self, **changes) -> 'RecurrenceRule':
        return dc_replace(self, **changes)

    def in_bounds(self, day: date) -> bool:
        return self.start_date <= day and (self.end_date is None or day <= self.end_date)

    def matches(self, day) -> bool:
        """Ist `day` ein Termin dieser Regel?"""
        from .calendar_logic import generate_occurrences, to_date
        day = to_date(day)
        return generate_occurrences(self, day, day) == [day]


@dataclass
class RouteCustomer:
    """Kunde auf einer Route; sequence_number ist reine Sortierinformation."""
    route_id: Any
    customer_id: Any
    sequence_number: int = 0
    notes: Optional[str] = None
    id: Any = None


@dataclass
class VisitSchedule:
    route_customer_id: Any
    tenant_id: Any
    rule: RecurrenceRule
    notes: Optional[str] = None
    id: Any = None


@dataclass(frozen=True)
class RouteAgentAssignment:
    """
    Zuweisung eines Agenten zu einer Route.
    end_date=None bedeutet unbefristet; assigned_weekdays zählt nur bei is_recurring.
    """
    route_id: Any
    agent_id: Any
    start_date: date
    end_date: Optional[date] = None
    assigned_weekdays: FrozenSet[int] = frozenset()
    is_recurring: bool = False
    notes: Optional[str] = None
    id: Any = None

    def __post_init__(self):
        start = _as_date(self.start_date, 'start_date')
        end = _as_date(self.end_date, 'end_date')
        if start is None:
            raise InvalidRuleError("Zuweisung ohne start_date")
        object.__setattr__(self, 'start_date', start)
        object.__setattr__(self, 'end_date', end)
        object.__setattr__(self, 'assigned_weekdays', _weekday_set(self.assigned_weekdays, 'assigned_weekdays'))
        if end is not None and start > end:
            raise InvertedRangeError(start, end, 'RouteAgentAssignment')

    def covers(self, day: date) -> bool:
        if day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        if self.is_recurring:
            return day.isoweekday() in self.assigned_weekdays
        return True


@dataclass
class Visit:
    """Ein (geplanter oder erledigter) Besuch bei einem Kunden."""
    visit_date: datetime
    customer_id: Any = None
    tenant_id: Any = None
    outcome: VisitOutcome = VisitOutcome.PENDING
    schedule_id: Any = None
    created_by: Any = None
    notes: Optional[str] = None
    id: Any = None

    @property
    def day(self) -> date:
        if isinstance(self.visit_date, datetime):
            return self.visit_date.date()
        return self.visit_date

    def with_outcome(self, outcome) -> 'Visit':
        # jedes Ergebnis darf manuell wieder geändert werden
        self.outcome = VisitOutcome(outcome)
        return self


@dataclass
class ReconciliationResult:
    to_create: List[date] = field(default_factory=list)
    already_present: List[date] = field(default_factory=list)
    orphaned: List[Visit] = field(default_factory=list)
