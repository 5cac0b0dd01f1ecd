import csv
from datetime import date

import pytest

from routecompass import main
from routecompass.data import Database


def test_run_sync_creates_and_dry_run_only_reports(tmp_path, monkeypatch, capsys, weekly_schedule):
    monkeypatch.setenv('HOME', str(tmp_path))
    db_path = str(tmp_path / 'routecompass.db')
    args = ['--db', db_path, '--schedule', str(weekly_schedule.id), '--from', '2024-01-01', '--days', '14']

    assert main.run_sync(args + ['--dry-run']) == 0
    assert 'Neu: 4' in capsys.readouterr().out

    csv_fn = str(tmp_path / 'plan.csv')
    assert main.run_sync(args + ['--csv', csv_fn]) == 0
    out = capsys.readouterr().out
    assert 'Angelegt: 4' in out

    check = Database(db_path)
    assert len(check.load_visits(weekly_schedule.id)) == 4
    check.close()


def test_run_sync_unknown_schedule(tmp_path, monkeypatch):
    monkeypatch.setenv('HOME', str(tmp_path))
    assert main.run_sync(['--db', str(tmp_path / 'x.db'), '--schedule', '42']) == 1


def test_wizard_prints_occurrences(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv('HOME', str(tmp_path))
    answers = iter(['weekly', '2030-01-07', '', '1', '1', '7'])
    monkeypatch.setattr('builtins.input', lambda prompt='': next(answers))
    main.run_wizard()
    out = capsys.readouterr().out
    assert 'Wöchentlich: Mo' in out
    assert date(2030, 1, 7).isoformat() in out


def _sync_args(tmp_path, weekly_schedule):
    return ['--db', str(tmp_path / 'routecompass.db'), '--schedule', str(weekly_schedule.id),
            '--from', '2024-01-01', '--days', '14']


def test_run_sync_csv_lists_responsible_agent(tmp_path, monkeypatch, capsys, weekly_schedule):
    monkeypatch.setenv('HOME', str(tmp_path))
    csv_fn = tmp_path / 'plan.csv'
    assert main.run_sync(_sync_args(tmp_path, weekly_schedule) + ['--dry-run', '--csv', str(csv_fn)]) == 0
    with open(csv_fn, newline='', encoding='utf-8') as f:
        rows = list(csv.reader(f))
    assert rows[0] == ['Datum', 'Wochentag', 'Status', 'Agent']
    assert rows[1] == ['2024-01-01', 'Mo', 'neu', 'ag1']
    assert [r[3] for r in rows[1:]] == ['ag1'] * 4


def test_run_sync_writes_pdf(tmp_path, monkeypatch, capsys, weekly_schedule):
    monkeypatch.setenv('HOME', str(tmp_path))
    pdf_fn = tmp_path / 'plan.pdf'
    assert main.run_sync(_sync_args(tmp_path, weekly_schedule) + ['--pdf', str(pdf_fn)]) == 0
    assert 'PDF gespeichert' in capsys.readouterr().out
    assert pdf_fn.read_bytes().startswith(b'%PDF')


def test_run_sync_second_run_counts_present(tmp_path, monkeypatch, capsys, weekly_schedule):
    monkeypatch.setenv('HOME', str(tmp_path))
    args = _sync_args(tmp_path, weekly_schedule)
    assert main.run_sync(args) == 0
    capsys.readouterr()

    csv_fn = tmp_path / 'again.csv'
    assert main.run_sync(args + ['--csv', str(csv_fn)]) == 0
    out = capsys.readouterr().out
    assert 'Angelegt: 0  Vorhanden: 4  Verwaist: 0' in out
    with open(csv_fn, newline='', encoding='utf-8') as f:
        rows = list(csv.reader(f))[1:]
    assert [r[2] for r in rows] == ['vorhanden'] * 4


@pytest.mark.parametrize("days", ['0', '-3'])
def test_run_sync_rejects_empty_window(tmp_path, monkeypatch, weekly_schedule, days):
    monkeypatch.setenv('HOME', str(tmp_path))
    args = ['--db', str(tmp_path / 'routecompass.db'), '--schedule', str(weekly_schedule.id), '--days', days]
    with pytest.raises(SystemExit):
        main.run_sync(args)
