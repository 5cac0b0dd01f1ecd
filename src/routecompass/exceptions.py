"""
Fehlerhierarchie für die Besuchsplanung.

    RouteCompassError (Basis)
    ├── InvalidRuleError      – widersprüchliche Wiederholungsregel
    ├── InvertedRangeError    – Start liegt nach dem Ende
    ├── DuplicateVisitError   – (schedule_id, Tag) existiert schon im Store
    └── ScheduleNotFoundError – Plan im Store nicht vorhanden
"""
from typing import Any, Dict, Optional


class RouteCompassError(Exception):
    """Basisklasse aller Fehler dieses Pakets."""
    error_type = 'RouteCompassError'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result = {'error': self.error_type, 'message': self.message}
        if self.details:
            result.update(self.details)
        return result


class InvalidRuleError(RouteCompassError):
    """Felder der Regel passen nicht zur Frequenz (z.B. day_of_month bei weekly)."""
    error_type = 'InvalidRule'


class InvertedRangeError(RouteCompassError):
    error_type = 'InvertedRange'

    def __init__(self, start, end, what: str = 'range'):
        super().__init__(
            f"{what}: start {start} liegt nach end {end}",
            {'start': str(start), 'end': str(end)},
        )
        self.start = start
        self.end = end


class DuplicateVisitError(RouteCompassError):
    """Vom Store geworfen, wenn für (schedule_id, Tag) schon ein Besuch existiert."""
    error_type = 'DuplicateVisit'

    def __init__(self, schedule_id, day):
        super().__init__(
            f"Besuch für Plan {schedule_id} am {day} existiert bereits",
            {'schedule_id': schedule_id, 'day': str(day)},
        )
        self.schedule_id = schedule_id
        self.day = day


class ScheduleNotFoundError(RouteCompassError):
    error_type = 'ScheduleNotFound'

    def __init__(self, schedule_id):
        super().__init__(f"Plan mit ID {schedule_id} nicht gefunden", {'schedule_id': schedule_id})
        self.schedule_id = schedule_id
