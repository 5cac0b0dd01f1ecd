from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List

from .calendar_logic import DateLike, iterate_days, to_date
from .models import UNASSIGNED, RouteAgentAssignment


class AssignmentRegistry:
    """In-Memory-Sicht auf alle Agenten-Zuweisungen, gruppiert nach Route."""

    def __init__(self, assignments: Iterable[RouteAgentAssignment] = ()):
        self._by_route: Dict[Any, List[RouteAgentAssignment]] = defaultdict(list)
        for a in assignments:
            self.add(a)

    def add(self, assignment: RouteAgentAssignment):
        self._by_route[assignment.route_id].append(assignment)

    def for_route(self, route_id) -> List[RouteAgentAssignment]:
        return list(self._by_route.get(route_id, ()))

    def routes(self) -> List[Any]:
        return [r for r, items in self._by_route.items() if items]

    def __len__(self):
        return sum(len(items) for items in self._by_route.values())


def _precedence(a: RouteAgentAssignment):
    # Einzel-Zuweisung vor Dauer-Zuweisung, dann jüngstes start_date, dann kleinste agent_id
    return (a.is_recurring, -a.start_date.toordinal(), a.agent_id)


def candidates(registry: AssignmentRegistry, route_id, day: date) -> List[RouteAgentAssignment]:
    """Alle Zuweisungen der Route, die `day` abdecken, in Vorrang-Reihenfolge."""
    hits = [a for a in registry.for_route(route_id) if a.covers(day)]
    return sorted(hits, key=_precedence)


def resolve_agent(registry: AssignmentRegistry, route_id, day: DateLike):
    """
    Verantwortlicher Agent einer Route an einem Tag oder UNASSIGNED.

    Bei Überschneidungen gilt:
      1. nicht wiederkehrende Zuweisung schlägt wiederkehrende
      2. bei gleicher Art gewinnt das spätere start_date
      3. danach die kleinste agent_id
    """
    hits = candidates(registry, route_id, to_date(day))
    if not hits:
        return UNASSIGNED
    return hits[0].agent_id


class AssignmentResolver:
    def __init__(self, registry: AssignmentRegistry):
        self.registry = registry

    def resolve(self, route_id, day: DateLike):
        return resolve_agent(self.registry, route_id, day)

    def resolve_range(self, route_id, start: DateLike, end: DateLike) -> Dict[date, Any]:
        """Tag -> Agent (oder UNASSIGNED) für jeden Tag im Zeitraum."""
        return {d: resolve_agent(self.registry, route_id, d)
                for d in iterate_days(to_date(start), to_date(end))}
