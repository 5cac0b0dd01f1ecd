#!/usr/bin/env python3
"""Zeigt für eine Route, welcher Agent an jedem Tag zuständig ist und welche Pläne Termine erzeugen.
Usage: analyze_route_window.py ROUTE_ID [start_date] [end_date] [--db PATH]
Dates in YYYY-MM-DD. Defaults: heute .. heute + window_days.
"""
import sys
import datetime

from routecompass.assignments import AssignmentRegistry, candidates
from routecompass.config import load_config
from routecompass.data import Database
from routecompass.export_utils import WEEKDAY_NAMES, format_schedule_label
from routecompass.reconcile import reconcile


def analyze(route_id, window_start, window_end, db_path=None):
    db = Database(db_path) if db_path else Database()
    try:
        registry = AssignmentRegistry(db.load_assignments(route_id))
        print(f'Route {route_id}: {len(registry)} Zuweisungen')
        for a in registry.for_route(route_id):
            kind = 'Dauer' if a.is_recurring else 'Einzel'
            print(f'  #{a.id} {a.agent_id} {kind} {a.start_date}..{a.end_date or "offen"} {sorted(a.assigned_weekdays)}')

        print('\nZuständigkeit:')
        day = window_start
        while day <= window_end:
            hits = candidates(registry, route_id, day)
            owner = hits[0].agent_id if hits else '-'
            overlap = f' (überlagert: {[h.agent_id for h in hits[1:]]})' if len(hits) > 1 else ''
            print(f'  {day.isoformat()} {WEEKDAY_NAMES[day.isoweekday()]}: {owner}{overlap}')
            day += datetime.timedelta(days=1)

        print('\nPläne:')
        for rc in db.load_route_customers(route_id):
            for sched in db.load_schedules(rc.id):
                res = reconcile(sched, db.load_visits(sched.id), window_start, window_end)
                print(f'  Kunde {rc.customer_id} (#{rc.sequence_number}) Plan {sched.id}: {format_schedule_label(sched.rule)}')
                print(f'    neu {len(res.to_create)}, vorhanden {len(res.already_present)}, verwaist {len(res.orphaned)}')
                for v in res.orphaned:
                    print(f'    ! verwaist {v.day.isoformat()} {v.outcome.value}')
    finally:
        db.close()


if __name__ == '__main__':
    argv = sys.argv[1:]
    db_path = None
    if '--db' in argv:
        i = argv.index('--db')
        db_path = argv[i + 1]
        del argv[i:i + 2]
    if not argv:
        print(__doc__)
        sys.exit(1)
    cfg = load_config()
    start = datetime.date.fromisoformat(argv[1]) if len(argv) > 1 else datetime.date.today()
    end = datetime.date.fromisoformat(argv[2]) if len(argv) > 2 else start + datetime.timedelta(days=int(cfg['window_days']) - 1)
    analyze(argv[0], start, end, db_path or cfg.get('db_path'))
