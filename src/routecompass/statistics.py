from collections import Counter
from datetime import date
from typing import Dict, Iterable, List

from routecompass.models import Visit, VisitOutcome

_COMPLETED = {VisitOutcome.SUCCESSFUL, VisitOutcome.UNSUCCESSFUL}
_MISSED = {VisitOutcome.CANCELLED, VisitOutcome.RESCHEDULED}


def count_by_outcome(visits: Iterable[Visit]) -> Dict[str, int]:
    """Anzahl Besuche je Ergebnis, alle Ergebnisse immer enthalten (auch 0)."""
    counts = Counter(VisitOutcome(v.outcome).value for v in visits)
    return {o.value: counts.get(o.value, 0) for o in VisitOutcome}


def count_by_agent(visits: Iterable[Visit]) -> Dict[object, int]:
    """Besuche je zuständigem Agenten; ohne Agent unter None."""
    return dict(Counter(v.created_by for v in visits))


def summarize_visits(planned: List[date], visits: Iterable[Visit]) -> Dict[str, float]:
    """
    Zusammenfassung für eine Liste geplanter Termine:
      total          : Anzahl Termine
      completed      : Termine mit Ergebnis successful/unsuccessful
      pending        : Termine ohne Besuch oder mit Status pending
      missed         : Termine mit cancelled/rescheduled
      completion_pct : completed / total in Prozent
    """
    by_day = {v.day: VisitOutcome(v.outcome) for v in visits}
    total = len(planned)
    completed = sum(1 for d in planned if by_day.get(d) in _COMPLETED)
    missed = sum(1 for d in planned if by_day.get(d) in _MISSED)
    pending = total - completed - missed
    completion_pct = round(completed / total * 100, 1) if total else 0.0
    return {
        'total': total,
        'completed': completed,
        'pending': pending,
        'missed': missed,
        'completion_pct': completion_pct,
    }
