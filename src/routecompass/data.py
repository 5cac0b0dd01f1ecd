import os
import sqlite3
import logging
from datetime import date, datetime
from typing import List, Optional

from routecompass.exceptions import DuplicateVisitError, ScheduleNotFoundError
from routecompass.models import (
    RecurrenceRule, RouteAgentAssignment, RouteCustomer, Visit, VisitOutcome, VisitSchedule,
)


def _ints(text: Optional[str]) -> List[int]:
    return [int(x) for x in (text or '').split(',') if x.strip()]


def _dates(text: Optional[str]) -> List[date]:
    return [date.fromisoformat(x.strip()) for x in (text or '').split(',') if x.strip()]


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


class Database:
    """
    sqlite-Store für Routen-Kunden, Agenten-Zuweisungen, Besuchspläne und Besuche.
    Der eindeutige Index (schedule_id, visit_day) verhindert doppelte Termine,
    auch wenn zwei Aufrufer gleichzeitig synchronisieren.
    """

    def __init__(self, db_path: str = None):
        try:
            self.db_path = db_path or os.path.join(os.path.expanduser("~"), ".routecompass", "routecompass.db")
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON;")
            self._ensure_tables()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS route_customers (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          route_id TEXT NOT NULL,
          customer_id TEXT NOT NULL,
          sequence_number INTEGER DEFAULT 0,
          notes TEXT,
          UNIQUE(route_id, customer_id)
        )""")

        # assigned_weekdays: ISO-Codes kommasepariert, Default Mo-Fr
        cur.execute("""
        CREATE TABLE IF NOT EXISTS route_agent_assignments (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          route_id TEXT NOT NULL,
          agent_id TEXT NOT NULL,
          start_date TEXT NOT NULL,
          end_date TEXT,
          assigned_weekdays TEXT DEFAULT '1,2,3,4,5',
          is_recurring INTEGER NOT NULL DEFAULT 0,
          notes TEXT
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS visit_schedules (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          route_customer_id INTEGER NOT NULL,
          tenant_id TEXT NOT NULL,
          frequency_type TEXT NOT NULL CHECK (frequency_type IN ('daily','weekly','monthly','custom')),
          frequency_value INTEGER NOT NULL DEFAULT 1,
          start_date TEXT NOT NULL,
          end_date TEXT,
          days_of_week TEXT,
          day_of_month INTEGER,
          exclude_dates TEXT,
          notes TEXT,
          FOREIGN KEY(route_customer_id) REFERENCES route_customers(id) ON DELETE CASCADE
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS visits (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          tenant_id TEXT,
          customer_id TEXT,
          visit_date TEXT NOT NULL,
          visit_day TEXT NOT NULL,
          outcome TEXT NOT NULL DEFAULT 'pending',
          schedule_id INTEGER,
          created_by TEXT,
          notes TEXT,
          FOREIGN KEY(schedule_id) REFERENCES visit_schedules(id),
          UNIQUE(schedule_id, visit_day)
        )""")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_assignments_route ON route_agent_assignments(route_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_visits_schedule ON visits(schedule_id)")
        self.conn.commit()

    # Routen-Kunden
    def save_route_customer(self, rc: RouteCustomer) -> RouteCustomer:
        cur = self.conn.cursor()
        if rc.id is not None:
            cur.execute(
                "UPDATE route_customers SET route_id=?, customer_id=?, sequence_number=?, notes=? WHERE id=?",
                (str(rc.route_id), str(rc.customer_id), rc.sequence_number, rc.notes, rc.id)
            )
        else:
            cur.execute(
                "INSERT INTO route_customers (route_id, customer_id, sequence_number, notes) VALUES (?,?,?,?)",
                (str(rc.route_id), str(rc.customer_id), rc.sequence_number, rc.notes)
            )
            rc.id = cur.lastrowid
        self.conn.commit()
        return rc

    def load_route_customer(self, route_customer_id) -> Optional[RouteCustomer]:
        row = self.conn.execute(
            "SELECT * FROM route_customers WHERE id=?", (route_customer_id,)
        ).fetchone()
        if row is None:
            return None
        return RouteCustomer(row['route_id'], row['customer_id'], row['sequence_number'], row['notes'], row['id'])

    def load_route_customers(self, route_id) -> List[RouteCustomer]:
        """Kunden der Route in Stopp-Reihenfolge."""
        rows = self.conn.execute(
            "SELECT * FROM route_customers WHERE route_id=? ORDER BY sequence_number, id", (str(route_id),)
        ).fetchall()
        return [RouteCustomer(r['route_id'], r['customer_id'], r['sequence_number'], r['notes'], r['id'])
                for r in rows]

    # Agenten-Zuweisungen
    def save_assignment(self, a: RouteAgentAssignment) -> RouteAgentAssignment:
        cur = self.conn.cursor()
        params = (str(a.route_id), str(a.agent_id), a.start_date.isoformat(), _iso(a.end_date),
                  ','.join(str(d) for d in sorted(a.assigned_weekdays)), int(a.is_recurring), a.notes)
        if a.id is not None:
            cur.execute(
                "UPDATE route_agent_assignments SET route_id=?, agent_id=?, start_date=?, end_date=?, "
                "assigned_weekdays=?, is_recurring=?, notes=? WHERE id=?", params + (a.id,)
            )
            saved = a
        else:
            cur.execute(
                "INSERT INTO route_agent_assignments "
                "(route_id, agent_id, start_date, end_date, assigned_weekdays, is_recurring, notes) "
                "VALUES (?,?,?,?,?,?,?)", params
            )
            # frozen dataclass: Kopie mit neuer ID
            saved = RouteAgentAssignment(a.route_id, a.agent_id, a.start_date, a.end_date,
                                         a.assigned_weekdays, a.is_recurring, a.notes, cur.lastrowid)
        self.conn.commit()
        return saved

    def load_assignments(self, route_id) -> List[RouteAgentAssignment]:
        rows = self.conn.execute(
            "SELECT * FROM route_agent_assignments WHERE route_id=? ORDER BY id", (str(route_id),)
        ).fetchall()
        return [
            RouteAgentAssignment(
                route_id=r['route_id'],
                agent_id=r['agent_id'],
                start_date=date.fromisoformat(r['start_date']),
                end_date=date.fromisoformat(r['end_date']) if r['end_date'] else None,
                assigned_weekdays=frozenset(_ints(r['assigned_weekdays'])),
                is_recurring=bool(r['is_recurring']),
                notes=r['notes'],
                id=r['id'],
            )
            for r in rows
        ]

    def delete_assignment(self, assignment_id: int):
        self.conn.execute("DELETE FROM route_agent_assignments WHERE id=?", (assignment_id,))
        self.conn.commit()

    # Besuchspläne
    def save_schedule(self, sched: VisitSchedule) -> VisitSchedule:
        """Legt den Plan an oder ersetzt die komplette Regel eines bestehenden Plans."""
        rec = sched.rule.to_record()
        params = (
            sched.route_customer_id, str(sched.tenant_id), rec['frequency_type'], rec['frequency_value'],
            rec['start_date'], rec['end_date'], ','.join(str(d) for d in rec['days_of_week']) or None,
            rec['day_of_month'], ','.join(rec['exclude_dates']) or None, sched.notes,
        )
        cur = self.conn.cursor()
        if sched.id is not None:
            cur.execute(
                "UPDATE visit_schedules SET route_customer_id=?, tenant_id=?, frequency_type=?, "
                "frequency_value=?, start_date=?, end_date=?, days_of_week=?, day_of_month=?, "
                "exclude_dates=?, notes=? WHERE id=?", params + (sched.id,)
            )
        else:
            cur.execute(
                "INSERT INTO visit_schedules (route_customer_id, tenant_id, frequency_type, frequency_value, "
                "start_date, end_date, days_of_week, day_of_month, exclude_dates, notes) "
                "VALUES (?,?,?,?,?,?,?,?,?,?)", params
            )
            sched.id = cur.lastrowid
        self.conn.commit()
        return sched

    def load_schedule(self, schedule_id) -> VisitSchedule:
        row = self.conn.execute("SELECT * FROM visit_schedules WHERE id=?", (schedule_id,)).fetchone()
        if row is None:
            raise ScheduleNotFoundError(schedule_id)
        rule = RecurrenceRule.from_record({
            'frequency_type': row['frequency_type'],
            'frequency_value': row['frequency_value'],
            'start_date': row['start_date'],
            'end_date': row['end_date'],
            'days_of_week': _ints(row['days_of_week']),
            'day_of_month': row['day_of_month'],
            'exclude_dates': _dates(row['exclude_dates']),
        })
        return VisitSchedule(row['route_customer_id'], row['tenant_id'], rule, row['notes'], row['id'])

    def load_schedules(self, route_customer_id) -> List[VisitSchedule]:
        rows = self.conn.execute(
            "SELECT id FROM visit_schedules WHERE route_customer_id=? ORDER BY id", (route_customer_id,)
        ).fetchall()
        return [self.load_schedule(r['id']) for r in rows]

    def delete_schedule(self, schedule_id):
        """Wiederholung aus: Plan löschen, bereits erzeugte Besuche bleiben als Einzelbesuche."""
        with self.conn:
            self.conn.execute("UPDATE visits SET schedule_id=NULL WHERE schedule_id=?", (schedule_id,))
            self.conn.execute("DELETE FROM visit_schedules WHERE id=?", (schedule_id,))

    # Besuche
    def _row_to_visit(self, r) -> Visit:
        return Visit(
            visit_date=datetime.fromisoformat(r['visit_date']),
            customer_id=r['customer_id'],
            tenant_id=r['tenant_id'],
            outcome=VisitOutcome(r['outcome']),
            schedule_id=r['schedule_id'],
            created_by=r['created_by'],
            notes=r['notes'],
            id=r['id'],
        )

    def create_visit(self, v: Visit) -> Visit:
        """Fügt den Besuch ein; ein zweiter Besuch für (schedule_id, Tag) wirft DuplicateVisitError."""
        visit_date = v.visit_date if isinstance(v.visit_date, datetime) else datetime.combine(v.visit_date, datetime.min.time())
        try:
            with self.conn:
                cur = self.conn.execute(
                    "INSERT INTO visits (tenant_id, customer_id, visit_date, visit_day, outcome, schedule_id, "
                    "created_by, notes) VALUES (?,?,?,?,?,?,?,?)",
                    (None if v.tenant_id is None else str(v.tenant_id),
                     None if v.customer_id is None else str(v.customer_id),
                     visit_date.isoformat(timespec='minutes'), v.day.isoformat(),
                     VisitOutcome(v.outcome).value, v.schedule_id,
                     None if v.created_by is None else str(v.created_by), v.notes)
                )
        except sqlite3.IntegrityError as e:
            if 'UNIQUE' in str(e):
                raise DuplicateVisitError(v.schedule_id, v.day) from e
            raise
        v.id = cur.lastrowid
        return v

    def load_visits(self, schedule_id, tenant_id=None) -> List[Visit]:
        query = "SELECT * FROM visits WHERE schedule_id=?"
        params = [schedule_id]
        if tenant_id is not None:
            query += " AND tenant_id=?"
            params.append(str(tenant_id))
        rows = self.conn.execute(query + " ORDER BY visit_day", params).fetchall()
        return [self._row_to_visit(r) for r in rows]

    def load_visits_between(self, start_date: date, end_date: date, tenant_id=None) -> List[Visit]:
        query = "SELECT * FROM visits WHERE visit_day BETWEEN ? AND ?"
        params = [start_date.isoformat(), end_date.isoformat()]
        if tenant_id is not None:
            query += " AND tenant_id=?"
            params.append(str(tenant_id))
        rows = self.conn.execute(query + " ORDER BY visit_day, id", params).fetchall()
        return [self._row_to_visit(r) for r in rows]

    def update_visit_outcome(self, visit_id: int, outcome):
        self.conn.execute("UPDATE visits SET outcome=? WHERE id=?", (VisitOutcome(outcome).value, visit_id))
        self.conn.commit()

    def delete_visit(self, visit_id: int):
        self.conn.execute("DELETE FROM visits WHERE id=?", (visit_id,))
        self.conn.commit()

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        if self.conn:
            self.conn.close()
            self.conn = None
