from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from .assignments import AssignmentResolver
from .calendar_logic import DateLike, generate_occurrences, to_date
from .models import UNASSIGNED, ReconciliationResult, RouteCustomer, Visit, VisitOutcome, VisitSchedule

DEFAULT_VISIT_TIME = time(9, 0)
DEFAULT_VISIT_NOTES = 'Scheduled visit'


def visits_by_day(schedule_id, visits: Iterable[Visit]) -> Dict[date, List[Visit]]:
    """Nur Besuche dieses Plans, nach Kalendertag gruppiert."""
    out: Dict[date, List[Visit]] = {}
    for v in visits:
        if v.schedule_id is None or v.schedule_id != schedule_id:
            continue
        out.setdefault(v.day, []).append(v)
    return out


def reconcile(schedule: VisitSchedule, existing_visits: Iterable[Visit],
              window_from: DateLike, window_to: DateLike) -> ReconciliationResult:
    """
    Vergleicht die Termine des Plans im Fenster mit den gespeicherten Besuchen.

      to_create       – Termine ohne Besuch
      already_present – Termine mit (generiertem oder manuell angelegtem) Besuch
      orphaned        – Besuche des Plans, deren Tag kein Termin mehr ist

    Verwaiste Besuche werden nur gemeldet, nie gelöscht. Ohne Schreibzugriffe
    dazwischen liefert ein zweiter Aufruf dasselbe Ergebnis.
    """
    occurrences = generate_occurrences(schedule.rule, window_from, window_to)
    occ_set = set(occurrences)
    existing = visits_by_day(schedule.id, existing_visits)

    result = ReconciliationResult()
    for d in occurrences:
        if d in existing:
            result.already_present.append(d)
        else:
            result.to_create.append(d)

    # nur Besuche im Fenster; ausserhalb fehlen die Vergleichstermine
    lo, hi = to_date(window_from), to_date(window_to)
    for d in sorted(existing):
        if lo <= d <= hi and d not in occ_set:
            result.orphaned.extend(existing[d])
    return result


def plan_visits(schedule: VisitSchedule, route_customer: RouteCustomer, dates: Iterable[date],
                resolver: Optional[AssignmentResolver] = None,
                visit_time: time = DEFAULT_VISIT_TIME,
                default_notes: str = DEFAULT_VISIT_NOTES) -> List[Visit]:
    """Besuchs-Hüllen (Status pending) für die zu erzeugenden Termine."""
    out = []
    for d in dates:
        agent = resolver.resolve(route_customer.route_id, d) if resolver else UNASSIGNED
        out.append(Visit(
            visit_date=datetime.combine(d, visit_time),
            customer_id=route_customer.customer_id,
            tenant_id=schedule.tenant_id,
            outcome=VisitOutcome.PENDING,
            schedule_id=schedule.id,
            created_by=None if agent is UNASSIGNED else agent,
            notes=schedule.notes or default_notes,
        ))
    return out
