# src/routecompass/main.py

import argparse
import logging
from datetime import date, timedelta
from typing import List, Optional

from .calendar_logic import generate_occurrences
from .config import load_config
from .data import Database
from .exceptions import RouteCompassError
from .export_utils import format_schedule_label, export_plan_csv, export_plan_pdf
from .models import FrequencyKind, RecurrenceRule
from .service import ScheduleService


def _read_weekdays(prompt: str) -> List[int]:
    days_str = input(prompt)
    return [int(x) for x in days_str.split(",") if x.strip().isdigit()]


def input_recurrence_rule() -> RecurrenceRule:
    print("\n✏️  Neuer Besuchsrhythmus:")
    kind = FrequencyKind(input("  Frequenz (daily/weekly/monthly/custom): ").strip().lower())
    start_str = input("  Startdatum (YYYY-MM-DD) [leer=heute]: ").strip()
    start = date.today() if not start_str else date.fromisoformat(start_str)
    end_str = input("  Enddatum (YYYY-MM-DD) [leer=offen]: ").strip()
    end = date.fromisoformat(end_str) if end_str else None

    if kind == FrequencyKind.CUSTOM:
        return RecurrenceRule.custom(start, _read_weekdays("  Wochentage (1=Mo … 7=So), kommasepariert: "),
                                     end_date=end)
    interval = int(input("  Intervall (z.B. 1): ") or 1)
    if kind == FrequencyKind.WEEKLY:
        weekdays = _read_weekdays("  Wochentage (1=Mo … 7=So), kommasepariert: ")
        return RecurrenceRule.weekly(start, weekdays, interval, end_date=end)
    if kind == FrequencyKind.MONTHLY:
        dom = int(input("  Tag im Monat (1-31): "))
        return RecurrenceRule.monthly(start, dom, interval, end_date=end)
    return RecurrenceRule.daily(start, interval, end_date=end)


def run_wizard():
    """Regel interaktiv erfassen und die Termine der nächsten Tage anzeigen."""
    print("🎯 Willkommen zum RouteCompass Planungs-Assistenten 🎯")
    cfg = load_config()
    try:
        rule = input_recurrence_rule()
    except (ValueError, RouteCompassError) as e:
        print(f"❌ Ungültige Regel: {e}")
        return
    days_str = input(f"Wie viele Tage anzeigen? [{cfg['window_days']}] ").strip()
    days = int(days_str) if days_str else int(cfg['window_days'])
    window_from = max(date.today(), rule.start_date)
    window_to = window_from + timedelta(days=max(days, 1) - 1)

    occurrences = generate_occurrences(rule, window_from, window_to)
    print(f"\n✅ {format_schedule_label(rule)}")
    print(f"   {len(occurrences)} Termine von {window_from} bis {window_to}:")
    for d in occurrences:
        print(" ", d.isoformat())


def run_sync(argv: Optional[List[str]] = None) -> int:
    """routecompass-sync --db PATH --schedule ID [--from YYYY-MM-DD] [--days N] [--dry-run] [--csv FILE] [--pdf FILE]"""
    parser = argparse.ArgumentParser(prog="routecompass-sync", description="Besuche aus einem Plan erzeugen")
    parser.add_argument("--db", help="Pfad zur sqlite-Datenbank")
    parser.add_argument("--schedule", type=int, required=True, help="ID des Besuchsplans")
    parser.add_argument("--from", dest="window_from", type=date.fromisoformat, default=None)
    parser.add_argument("--days", type=int, default=None, help="Fenstergröße in Tagen (>= 1)")
    parser.add_argument("--dry-run", action="store_true", help="nur anzeigen, nichts anlegen")
    parser.add_argument("--csv", help="Plan zusätzlich als CSV exportieren")
    parser.add_argument("--pdf", help="Plan zusätzlich als PDF exportieren")
    args = parser.parse_args(argv)
    if args.days is not None and args.days < 1:
        parser.error(f"--days muss mindestens 1 sein, nicht {args.days}")

    logging.basicConfig(level=logging.INFO)
    cfg = load_config()
    db = Database(args.db or cfg.get('db_path'))
    try:
        service = ScheduleService(db, cfg)
        first = args.window_from or date.today()
        days = args.days if args.days is not None else int(cfg['window_days'])
        last = first + timedelta(days=days - 1)
        try:
            if args.dry_run:
                result = service.preview(args.schedule, first, last)
                print(f"Neu: {len(result.to_create)}  Vorhanden: {len(result.already_present)}  "
                      f"Verwaist: {len(result.orphaned)}")
            else:
                report = service.sync(args.schedule, first, last)
                result = report.as_result()
                print(f"Angelegt: {report.created_count}  Vorhanden: {len(result.already_present)}  "
                      f"Verwaist: {len(result.orphaned)}")
            agents = service.agents_for(args.schedule, first, last) if (args.csv or args.pdf) else {}
        except RouteCompassError as e:
            logging.error(f"[RouteCompass] {e.message}")
            return 1
        for v in result.orphaned:
            print(f"  ⚠️  verwaist: {v.day.isoformat()} ({v.outcome.value})")
        if args.csv:
            export_plan_csv(args.csv, result, agents)
            print(f"CSV gespeichert: {args.csv}")
        if args.pdf:
            label = format_schedule_label(db.load_schedule(args.schedule).rule)
            export_plan_pdf(args.pdf, result, agents, label=f"Plan {args.schedule}: {label}")
            print(f"PDF gespeichert: {args.pdf}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    run_wizard()
