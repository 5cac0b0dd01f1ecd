import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, List, Union

from dateutil.relativedelta import relativedelta

from .exceptions import InvertedRangeError
from .models import FrequencyKind, RecurrenceRule


DateLike = Union[date, datetime, str]


# --- Kalender-Hilfsfunktionen ---------------------------------------------

def to_date(value: DateLike) -> date:
    """datetime/ISO-String -> naive date. Zeitzonen werden ignoriert, es zählt der Kalendertag."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def iso_weekday(d: date) -> int:
    """1=Montag … 7=Sonntag"""
    return d.isoweekday()


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def add_weeks(d: date, n: int) -> date:
    return d + timedelta(weeks=n)


def add_months_clamped(d: date, n: int) -> date:
    """
    n Kalendermonate addieren; der Tag wird auf den letzten gültigen Tag
    des Zielmonats gekürzt (31.01. + 1 Monat -> 28./29.02., nie 03.03.).
    """
    return d + relativedelta(months=n)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, last_day_of_month(year, month)))


def days_between(a: date, b: date) -> int:
    """Vorzeichenbehaftet: b - a in Tagen."""
    return (b - a).days


def months_between(a: date, b: date) -> int:
    return (b.year - a.year) * 12 + (b.month - a.month)


def week_start(d: date) -> date:
    """Montag der ISO-Woche von d."""
    return d - timedelta(days=d.isoweekday() - 1)


def iterate_days(start: date, end: date) -> Iterator[date]:
    """Alle Tage von start bis end (beide inklusive)."""
    if start > end:
        raise InvertedRangeError(start, end, 'iterate_days')
    return _iter_days(start, end)


def _iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# --- Terminerzeugung ------------------------------------------------------

def iter_occurrences(rule: RecurrenceRule, window_from: DateLike, window_to: DateLike) -> Iterator[date]:
    """
    Lazy-Variante von generate_occurrences. Das Fenster wird sofort geprüft,
    die Termine werden aufsteigend und ohne Duplikate geliefert.
    """
    wf, wt = to_date(window_from), to_date(window_to)
    if wf > wt:
        raise InvertedRangeError(wf, wt, 'window')
    return _occurrences(rule, wf, wt)


def generate_occurrences(rule: RecurrenceRule, window_from: DateLike, window_to: DateLike) -> List[date]:
    """Alle Termine der Regel im Fenster [window_from, window_to], aufsteigend sortiert."""
    return list(iter_occurrences(rule, window_from, window_to))


def _occurrences(rule: RecurrenceRule, wf: date, wt: date) -> Iterator[date]:
    # Schnittmenge aus Fenster und Regel-Laufzeit
    lo = max(wf, rule.start_date)
    hi = wt if rule.end_date is None else min(wt, rule.end_date)
    if lo > hi:
        return

    kind = rule.frequency_kind
    if kind == FrequencyKind.DAILY:
        raw = _daily(rule, lo, hi)
    elif kind == FrequencyKind.MONTHLY:
        raw = _monthly(rule, lo, hi)
    else:
        # custom = freie Wochentage ohne Wochen-Intervall
        interval = rule.interval_count if kind == FrequencyKind.WEEKLY else 1
        raw = _weekly(rule, lo, hi, interval)

    for d in raw:
        if d not in rule.excluded_dates:
            yield d


def _daily(rule: RecurrenceRule, lo: date, hi: date) -> Iterator[date]:
    # Takt ab rule.start_date, nicht ab Fensterbeginn
    step = rule.interval_count
    offset = days_between(rule.start_date, lo) % step
    current = lo if offset == 0 else add_days(lo, step - offset)
    while current <= hi:
        yield current
        current = add_days(current, step)


def _weekly(rule: RecurrenceRule, lo: date, hi: date, interval: int) -> Iterator[date]:
    anchor = week_start(rule.start_date)
    for d in _iter_days(lo, hi):
        if iso_weekday(d) not in rule.weekday_set:
            continue
        week_index = days_between(anchor, week_start(d)) // 7
        if week_index % interval == 0:
            yield d


def _monthly(rule: RecurrenceRule, lo: date, hi: date) -> Iterator[date]:
    step = rule.interval_count
    # erstes k, dessen Monat nicht vor lo liegt, auf den Takt aufgerundet
    k = max(0, months_between(rule.start_date, lo))
    if k % step:
        k += step - k % step
    while True:
        month_anchor = add_months_clamped(rule.start_date, k)
        candidate = clamp_day(month_anchor.year, month_anchor.month, rule.day_of_month)
        if candidate > hi:
            return
        if candidate >= lo:
            yield candidate
        k += step
