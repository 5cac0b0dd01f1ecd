from datetime import date

import pytest

from routecompass.data import Database
from routecompass.models import RecurrenceRule, RouteAgentAssignment, RouteCustomer, VisitSchedule


@pytest.fixture
def db(tmp_path):
    db = Database(str(tmp_path / 'routecompass.db'))
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def weekly_schedule(db):
    """Route r1 / Kunde c1, Besuch Mo+Mi ab 2024-01-01, Agent ag1 Mo-Fr."""
    rc = db.save_route_customer(RouteCustomer('r1', 'c1', sequence_number=1))
    db.save_assignment(RouteAgentAssignment('r1', 'ag1', date(2024, 1, 1), None, {1, 2, 3, 4, 5}, is_recurring=True))
    rule = RecurrenceRule.weekly(date(2024, 1, 1), {1, 3})
    return db.save_schedule(VisitSchedule(rc.id, 't1', rule))
