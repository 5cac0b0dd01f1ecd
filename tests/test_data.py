from datetime import date, datetime

import pytest

from routecompass.exceptions import DuplicateVisitError, ScheduleNotFoundError
from routecompass.models import (
    RecurrenceRule, RouteAgentAssignment, RouteCustomer, Visit, VisitOutcome, VisitSchedule,
)


def test_schedule_roundtrip_keeps_rule(db):
    rc = db.save_route_customer(RouteCustomer('r1', 'c1'))
    rule = RecurrenceRule.weekly(date(2024, 1, 1), {1, 5}, interval_count=2,
                                 end_date=date(2024, 12, 31), excluded_dates={date(2024, 1, 15)})
    sched = db.save_schedule(VisitSchedule(rc.id, 't1', rule, notes='Kühlregal'))
    loaded = db.load_schedule(sched.id)
    assert loaded.rule == rule
    assert loaded.notes == 'Kühlregal'
    assert loaded.route_customer_id == rc.id

    # ganze Regel ersetzen
    sched.rule = RecurrenceRule.monthly(date(2024, 1, 1), 31)
    db.save_schedule(sched)
    assert db.load_schedule(sched.id).rule.day_of_month == 31
    assert db.load_schedule(sched.id).rule.weekday_set == frozenset()


def test_load_schedules_of_route_customer(db, weekly_schedule):
    scheds = db.load_schedules(weekly_schedule.route_customer_id)
    assert [s.id for s in scheds] == [weekly_schedule.id]
    assert db.load_schedules(999) == []


def test_missing_schedule_raises(db):
    with pytest.raises(ScheduleNotFoundError):
        db.load_schedule(12345)


def test_assignment_roundtrip(db):
    saved = db.save_assignment(RouteAgentAssignment('r1', 'ag1', date(2024, 1, 1), date(2024, 6, 30), {1, 2}, True, 'Vertretung'))
    assert saved.id is not None
    loaded = db.load_assignments('r1')
    assert len(loaded) == 1
    a = loaded[0]
    assert (a.agent_id, a.start_date, a.end_date) == ('ag1', date(2024, 1, 1), date(2024, 6, 30))
    assert a.assigned_weekdays == frozenset({1, 2})
    assert a.is_recurring is True
    assert db.load_assignments('r2') == []
    db.delete_assignment(saved.id)
    assert db.load_assignments('r1') == []


def test_route_customers_in_sequence_order(db):
    db.save_route_customer(RouteCustomer('r1', 'c3', sequence_number=3))
    db.save_route_customer(RouteCustomer('r1', 'c1', sequence_number=1))
    db.save_route_customer(RouteCustomer('r2', 'c9', sequence_number=0))
    assert [rc.customer_id for rc in db.load_route_customers('r1')] == ['c1', 'c3']


def test_duplicate_visit_per_schedule_day(db, weekly_schedule):
    sid = weekly_schedule.id
    db.create_visit(Visit(datetime(2024, 1, 1, 9, 0), 'c1', 't1', schedule_id=sid))
    with pytest.raises(DuplicateVisitError) as exc:
        db.create_visit(Visit(datetime(2024, 1, 1, 15, 0), 'c1', 't1', schedule_id=sid))
    assert exc.value.day == date(2024, 1, 1)
    # Einzelbesuche ohne Plan dürfen am selben Tag mehrfach existieren
    db.create_visit(Visit(datetime(2024, 1, 1, 10, 0), 'c1', 't1'))
    db.create_visit(Visit(datetime(2024, 1, 1, 11, 0), 'c1', 't1'))
    assert len(db.load_visits_between(date(2024, 1, 1), date(2024, 1, 1))) == 3


def test_delete_schedule_detaches_visits(db, weekly_schedule):
    sid = weekly_schedule.id
    v = db.create_visit(Visit(datetime(2024, 1, 3, 9, 0), 'c1', 't1', schedule_id=sid))
    db.update_visit_outcome(v.id, VisitOutcome.SUCCESSFUL)
    db.delete_schedule(sid)

    with pytest.raises(ScheduleNotFoundError):
        db.load_schedule(sid)
    assert db.load_visits(sid) == []
    remaining = db.load_visits_between(date(2024, 1, 1), date(2024, 1, 31))
    assert len(remaining) == 1
    assert remaining[0].schedule_id is None
    assert remaining[0].outcome == VisitOutcome.SUCCESSFUL


def test_load_visits_tenant_filter(db, weekly_schedule):
    sid = weekly_schedule.id
    db.create_visit(Visit(datetime(2024, 1, 1, 9, 0), 'c1', 't1', schedule_id=sid))
    assert len(db.load_visits(sid, tenant_id='t1')) == 1
    assert db.load_visits(sid, tenant_id='t2') == []
