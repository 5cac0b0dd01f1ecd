from datetime import date, datetime, time

from routecompass.assignments import AssignmentRegistry, AssignmentResolver
from routecompass.models import (
    RecurrenceRule, RouteAgentAssignment, RouteCustomer, Visit, VisitOutcome, VisitSchedule,
)
from routecompass.reconcile import plan_visits, reconcile

WF, WT = date(2024, 1, 1), date(2024, 1, 21)


def make_schedule(**kw):
    rule = RecurrenceRule.weekly(date(2024, 1, 1), {1})
    return VisitSchedule(route_customer_id=1, tenant_id='t1', rule=rule, id=7, **kw)


def test_reconcile_partitions_occurrences():
    sched = make_schedule()
    done = Visit(datetime(2024, 1, 8, 9, 0), schedule_id=7, outcome=VisitOutcome.SUCCESSFUL)
    moved = Visit(datetime(2024, 1, 10, 9, 0), schedule_id=7)           # Mittwoch, kein Termin
    foreign = Visit(datetime(2024, 1, 15, 9, 0), schedule_id=99)        # anderer Plan
    detached = Visit(datetime(2024, 1, 1, 9, 0), schedule_id=None)      # Einzelbesuch

    res = reconcile(sched, [done, moved, foreign, detached], WF, WT)
    assert res.to_create == [date(2024, 1, 1), date(2024, 1, 15)]
    assert res.already_present == [date(2024, 1, 8)]
    assert res.orphaned == [moved]


def test_orphans_outside_window_not_reported():
    sched = make_schedule()
    later = Visit(datetime(2024, 2, 7, 9, 0), schedule_id=7)
    res = reconcile(sched, [later], WF, WT)
    assert res.orphaned == []


def test_reconcile_is_idempotent_after_commit():
    sched = make_schedule()
    stored = []
    first = reconcile(sched, stored, WF, WT)
    assert first.to_create == reconcile(sched, stored, WF, WT).to_create

    stored.extend(Visit(datetime.combine(d, time(9, 0)), schedule_id=7) for d in first.to_create)
    second = reconcile(sched, stored, WF, WT)
    assert second.to_create == []
    assert second.already_present == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]


def test_excluded_date_turns_existing_visit_into_orphan():
    sched = make_schedule()
    existing = [Visit(datetime(2024, 1, 8, 9, 0), schedule_id=7, outcome=VisitOutcome.UNSUCCESSFUL)]
    sched.rule = sched.rule.replace(excluded_dates=frozenset({date(2024, 1, 8)}))
    res = reconcile(sched, existing, WF, WT)
    assert [v.day for v in res.orphaned] == [date(2024, 1, 8)]
    assert date(2024, 1, 8) not in res.to_create


def test_manual_visit_on_generated_date_counts_as_present():
    sched = make_schedule()
    # zwei Besuche am selben Tag (z.B. manuell nachgetragen) -> nur einmal vorhanden
    manual = [Visit(datetime(2024, 1, 15, 14, 0), schedule_id=7), Visit(datetime(2024, 1, 15, 16, 0), schedule_id=7)]
    res = reconcile(sched, manual, WF, WT)
    assert res.already_present == [date(2024, 1, 15)]
    assert date(2024, 1, 15) not in res.to_create


def test_plan_visits_builds_pending_shells_with_agent():
    sched = make_schedule()
    rc = RouteCustomer('r1', 'c1', id=1)
    resolver = AssignmentResolver(AssignmentRegistry([
        RouteAgentAssignment('r1', 'ag1', date(2024, 1, 1), None, {1, 2, 3, 4, 5}, is_recurring=True),
    ]))
    shells = plan_visits(sched, rc, [date(2024, 1, 1), date(2024, 1, 6)], resolver)
    assert [v.visit_date for v in shells] == [datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 6, 9, 0)]
    assert shells[0].created_by == 'ag1'
    assert shells[1].created_by is None           # Samstag: niemand zuständig
    assert all(v.outcome == VisitOutcome.PENDING for v in shells)
    assert all(v.schedule_id == 7 and v.customer_id == 'c1' and v.tenant_id == 't1' for v in shells)
    assert shells[0].notes == 'Scheduled visit'

    noted = make_schedule(notes='Regal auffüllen')
    assert plan_visits(noted, rc, [date(2024, 1, 1)])[0].notes == 'Regal auffüllen'


def test_outcome_can_be_reedited():
    v = Visit(datetime(2024, 1, 1, 9, 0))
    v.with_outcome('successful').with_outcome(VisitOutcome.RESCHEDULED)
    assert v.outcome == VisitOutcome.RESCHEDULED
