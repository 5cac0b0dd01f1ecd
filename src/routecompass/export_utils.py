import csv
from datetime import date
from typing import Dict, Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from routecompass.models import UNASSIGNED, FrequencyKind, ReconciliationResult, RecurrenceRule

WEEKDAY_NAMES = {1: 'Mo', 2: 'Di', 3: 'Mi', 4: 'Do', 5: 'Fr', 6: 'Sa', 7: 'So'}


def _agent_text(agent) -> str:
    return '-' if agent is None or agent is UNASSIGNED else str(agent)


def format_schedule_label(rule: RecurrenceRule) -> str:
    """Kurzbeschreibung einer Regel, z.B. 'Alle 2 Wochen: Mo, Mi'."""
    kind = rule.frequency_kind
    days = ', '.join(WEEKDAY_NAMES[d] for d in sorted(rule.weekday_set))
    if kind == FrequencyKind.DAILY:
        label = 'Täglich' if rule.interval_count == 1 else f"Alle {rule.interval_count} Tage"
    elif kind == FrequencyKind.WEEKLY:
        label = 'Wöchentlich' if rule.interval_count == 1 else f"Alle {rule.interval_count} Wochen"
        label += f": {days}"
    elif kind == FrequencyKind.MONTHLY:
        label = 'Monatlich' if rule.interval_count == 1 else f"Alle {rule.interval_count} Monate"
        label += f" am {rule.day_of_month}."
    else:
        label = f"Individuell: {days}"
    if rule.end_date:
        label += f" (bis {rule.end_date.isoformat()})"
    return label


def _rows(result: ReconciliationResult, agents: Dict[date, object]):
    for d in result.to_create:
        yield d, 'neu', _agent_text(agents.get(d))
    for d in result.already_present:
        yield d, 'vorhanden', _agent_text(agents.get(d))


def export_plan_csv(filename: str, result: ReconciliationResult, agents: Optional[Dict[date, object]] = None):
    """Besuchsplan als CSV; verwaiste Besuche am Ende zur manuellen Prüfung."""
    agents = agents or {}
    with open(filename, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["Datum", "Wochentag", "Status", "Agent"])
        for d, state, agent in sorted(_rows(result, agents)):
            writer.writerow([d.isoformat(), WEEKDAY_NAMES[d.isoweekday()], state, agent])
        for v in result.orphaned:
            writer.writerow([v.day.isoformat(), WEEKDAY_NAMES[v.day.isoweekday()], 'verwaist', _agent_text(v.created_by)])


def export_plan_pdf(filename: str, result: ReconciliationResult, agents: Optional[Dict[date, object]] = None,
                    title: str = 'RouteCompass Besuchsplan', label: str = ''):
    agents = agents or {}
    c = canvas.Canvas(filename, pagesize=A4)
    w, h = A4
    y = h - 40
    c.setFont('Helvetica-Bold', 14)
    c.drawString(50, y, title)
    y -= 20
    c.setFont('Helvetica', 10)
    if label:
        c.drawString(50, y, label)
        y -= 15
    c.drawString(50, y, f"Neu: {len(result.to_create)}   Vorhanden: {len(result.already_present)}   "
                        f"Verwaist: {len(result.orphaned)}")
    y -= 30

    def header(y):
        c.setFont('Helvetica-Bold', 12)
        c.drawString(50, y, "Datum      | Tag | Status     | Agent")
        c.setFont('Helvetica', 10)
        return y - 20

    y = header(y)
    lines = [(d, state, agent) for d, state, agent in sorted(_rows(result, agents))]
    lines += [(v.day, 'verwaist', _agent_text(v.created_by)) for v in result.orphaned]
    for d, state, agent in lines:
        if y < 60:
            c.showPage()
            y = header(h - 40)
        c.drawString(50, y, f"{d.isoformat()} | {WEEKDAY_NAMES[d.isoweekday()]}  | {state:<10} | {agent}")
        y -= 15
    c.save()
