"""
ScheduleService: einzige Schnittstelle, die der Rest der Anwendung aufruft.

Der Store muss folgende Methoden anbieten (siehe routecompass.data.Database):
    load_schedule(id), load_route_customer(id), load_assignments(route_id),
    load_visits(schedule_id), create_visit(visit)
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from .assignments import AssignmentRegistry, AssignmentResolver
from .calendar_logic import DateLike, to_date
from .config import DEFAULTS
from .exceptions import DuplicateVisitError, ScheduleNotFoundError
from .models import ReconciliationResult, Visit
from .reconcile import plan_visits, reconcile


@dataclass
class SyncReport:
    schedule_id: object
    created: List[Visit] = field(default_factory=list)
    already_present: List[date] = field(default_factory=list)
    duplicates: List[date] = field(default_factory=list)   # parallel angelegt, zählt als vorhanden
    orphaned: List[Visit] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    def as_result(self) -> ReconciliationResult:
        """Stand nach dem Lauf; parallel angelegte Tage zählen als vorhanden."""
        return ReconciliationResult(
            to_create=[v.day for v in self.created],
            already_present=sorted(self.already_present + self.duplicates),
            orphaned=list(self.orphaned),
        )


class ScheduleService:
    def __init__(self, store, config: Optional[dict] = None):
        self.store = store
        self.config = dict(DEFAULTS)
        self.config.update(config or {})

    def _visit_time(self):
        return datetime.strptime(self.config['default_visit_time'], '%H:%M').time()

    def _load(self, schedule_id):
        schedule = self.store.load_schedule(schedule_id)
        route_customer = self.store.load_route_customer(schedule.route_customer_id)
        if route_customer is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule, route_customer

    def resolver_for(self, route_id) -> AssignmentResolver:
        return AssignmentResolver(AssignmentRegistry(self.store.load_assignments(route_id)))

    def resolve_agent(self, route_id, day: DateLike):
        return self.resolver_for(route_id).resolve(route_id, day)

    def agents_for(self, schedule_id, window_from: DateLike, window_to: DateLike):
        """Zuständiger Agent je Tag im Fenster, für die Route des Plans."""
        _, route_customer = self._load(schedule_id)
        return self.resolver_for(route_customer.route_id).resolve_range(
            route_customer.route_id, window_from, window_to)

    def preview(self, schedule_id, window_from: DateLike, window_to: DateLike) -> ReconciliationResult:
        """Reconciliation ohne Schreibzugriffe."""
        schedule = self.store.load_schedule(schedule_id)
        return reconcile(schedule, self.store.load_visits(schedule_id), window_from, window_to)

    def sync(self, schedule_id, window_from: DateLike, window_to: DateLike) -> SyncReport:
        """
        Lesen -> abgleichen -> fehlende Besuche anlegen. Ein DuplicateVisitError
        beim Anlegen heißt, ein anderer Aufrufer war schneller; der Tag gilt
        dann als vorhanden.
        """
        schedule, route_customer = self._load(schedule_id)
        result = reconcile(schedule, self.store.load_visits(schedule_id), window_from, window_to)
        resolver = self.resolver_for(route_customer.route_id)

        report = SyncReport(schedule_id, already_present=list(result.already_present),
                            orphaned=list(result.orphaned))
        shells = plan_visits(schedule, route_customer, result.to_create, resolver,
                             visit_time=self._visit_time(),
                             default_notes=self.config['default_visit_notes'])
        for visit in shells:
            try:
                report.created.append(self.store.create_visit(visit))
            except DuplicateVisitError:
                logging.info(f"[RouteCompass] Besuch {schedule_id}/{visit.day} bereits vorhanden (parallel angelegt).")
                report.duplicates.append(visit.day)

        logging.info(
            f"[RouteCompass] Plan {schedule_id} {to_date(window_from)}..{to_date(window_to)}: "
            f"{report.created_count} neu, {len(report.already_present) + len(report.duplicates)} vorhanden, "
            f"{len(report.orphaned)} verwaist."
        )
        if report.orphaned:
            logging.warning(f"[RouteCompass] Plan {schedule_id}: verwaiste Besuche "
                            f"{[v.day.isoformat() for v in report.orphaned]} bitte prüfen.")
        return report

    def sync_window(self, schedule_id, start: Optional[DateLike] = None, days: Optional[int] = None) -> SyncReport:
        """
        sync() über `days` Tage ab `start` (Default heute), beide Enden inklusive.
        Ohne `days` gilt window_days aus der Konfiguration; days < 1 -> ValueError.
        """
        first = to_date(start) if start is not None else date.today()
        days = days if days is not None else int(self.config['window_days'])
        if days < 1:
            raise ValueError(f"Fenstergröße muss mindestens 1 Tag sein, nicht {days}")
        return self.sync(schedule_id, first, first + timedelta(days=days - 1))
