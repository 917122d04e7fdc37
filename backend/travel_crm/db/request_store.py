# backend/travel_crm/db/request_store.py

import sqlite3
import json
import time
from datetime import date
from pathlib import Path
from typing import Optional, Dict, Any, List
from uuid import uuid4

from travel_crm.core.config_loader import settings
from travel_crm.core.errors import InvalidOptionError
from travel_crm.core.logger import logger
from travel_crm.models.email_models import SentOption
from travel_crm.models.itinerary_models import OPTION_SLOTS
from travel_crm.utils.time_utils import utc_now_iso


# Retry configuration
MAX_RETRIES = 5
RETRY_DELAY = 0.1  # 100ms

FOLLOW_UP_LOG_LIMIT = 50

# column -> value used when the stored JSON is missing or corrupt
JSON_COLUMNS = {
    "children_ages": list,
    "sent_options": list,
    "follow_up_emails_sent": list,
    "itinerary_options": lambda: {"options": [None] * OPTION_SLOTS},
}

REQUEST_COLUMNS = (
    "client_name", "email", "whatsapp", "travel_dates", "start_date", "end_date",
    "duration", "origin_country", "number_of_adults", "number_of_children",
    "children_ages", "additional_preferences", "details", "itinerary_options",
    "selected_option", "public_token", "status", "notes", "sent_at",
    "last_sent_at", "last_sent_option", "email_sent_count", "sent_options",
    "follow_up_emails_sent",
)


def empty_option_slots() -> List[Optional[dict]]:
    return [None] * OPTION_SLOTS


def padded_slots(options: Optional[List[Optional[dict]]]) -> List[Optional[dict]]:
    slots = list(options or [])[:OPTION_SLOTS]
    while len(slots) < OPTION_SLOTS:
        slots.append(None)
    return slots


class RequestStore:
    def __init__(self, db_path: Optional[str] = None):
        path = Path(db_path or settings.DB_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = path

        self.conn = sqlite3.connect(
            str(path),
            check_same_thread=False,
            timeout=30.0
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA busy_timeout=30000")
        self._init_tables()

    def _execute_with_retry(self, operation, *args, **kwargs):
        """Execute database operation with retry logic for handling locked database"""
        for attempt in range(MAX_RETRIES):
            try:
                return operation(*args, **kwargs)
            except sqlite3.OperationalError as e:
                if "locked" in str(e).lower() and attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                raise

    # ----------------------------------------------------------------------
    # CREATE TABLES
    # ----------------------------------------------------------------------
    def _init_tables(self):
        cur = self.conn.cursor()

        # CLIENT REQUESTS
        cur.execute("""
        CREATE TABLE IF NOT EXISTS requests (
            id TEXT PRIMARY KEY,
            client_name TEXT,
            email TEXT,
            whatsapp TEXT,
            travel_dates TEXT,
            start_date TEXT,
            end_date TEXT,
            duration INTEGER,
            origin_country TEXT,
            number_of_adults INTEGER,
            number_of_children INTEGER,
            children_ages TEXT,
            additional_preferences TEXT,
            details TEXT,

            itinerary_options TEXT,
            selected_option INTEGER,
            public_token TEXT UNIQUE,
            status TEXT DEFAULT 'new',
            notes TEXT,

            sent_at TEXT,
            last_sent_at TEXT,
            last_sent_option INTEGER,
            email_sent_count INTEGER DEFAULT 0,
            sent_options TEXT,
            follow_up_emails_sent TEXT,

            created_at TEXT,
            updated_at TEXT
        );
        """)

        # STAFF ACCOUNTS
        cur.execute("""
        CREATE TABLE IF NOT EXISTS staff_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT UNIQUE,
            full_name TEXT,
            hashed_password TEXT,
            created_at TEXT
        );
        """)

        # VEHICLE CALENDAR
        cur.execute("""
        CREATE TABLE IF NOT EXISTS vehicle_reservations (
            vehicle TEXT,
            reserved_date TEXT,
            created_at TEXT,
            PRIMARY KEY (vehicle, reserved_date)
        );
        """)

        # INDEXES
        cur.execute("CREATE INDEX IF NOT EXISTS idx_requests_status ON requests(status);")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_requests_created ON requests(created_at);")

        self.conn.commit()

    # ----------------------------------------------------------------------
    # ROW ENCODING
    # ----------------------------------------------------------------------
    @staticmethod
    def _encode(column: str, value: Any) -> Any:
        if column in JSON_COLUMNS:
            return json.dumps(value) if value is not None else None
        if isinstance(value, date):
            return value.isoformat()
        return value

    @staticmethod
    def _decode_row(row: sqlite3.Row) -> Dict[str, Any]:
        item = dict(row)
        for column, default in JSON_COLUMNS.items():
            raw = item.get(column)
            if raw is None or raw == "":
                item[column] = default()
                continue
            try:
                item[column] = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                logger.error(f"Corrupt JSON in requests.{column} for request {item.get('id')}")
                item[column] = default()

        options = item["itinerary_options"]
        if not isinstance(options, dict) or not isinstance(options.get("options"), list):
            options = {"options": []}
        item["itinerary_options"] = {"options": padded_slots(options["options"])}
        item["email_sent_count"] = item.get("email_sent_count") or 0
        return item

    # ----------------------------------------------------------------------
    # REQUEST CRUD
    # ----------------------------------------------------------------------
    def create_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request_id = str(uuid4())
        now = utc_now_iso()

        values = {column: data.get(column) for column in REQUEST_COLUMNS}
        values["status"] = values["status"] or "new"
        values["email_sent_count"] = 0
        values["itinerary_options"] = {"options": empty_option_slots()}

        def _create():
            columns = ["id", *REQUEST_COLUMNS, "created_at", "updated_at"]
            params = [request_id] + [self._encode(c, values[c]) for c in REQUEST_COLUMNS] + [now, now]
            placeholders = ", ".join("?" for _ in columns)
            cur = self.conn.cursor()
            cur.execute(
                f"INSERT INTO requests ({', '.join(columns)}) VALUES ({placeholders})",
                params,
            )
            self.conn.commit()

        self._execute_with_retry(_create)
        logger.info(f"Created request {request_id} for {values['client_name']}")
        return self.get_request(request_id)

    def get_request(self, request_id: str) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM requests WHERE id = ?", (request_id,))
        row = cur.fetchone()
        return self._decode_row(row) if row else None

    def get_request_by_token(self, public_token: str) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM requests WHERE public_token = ?", (public_token,))
        row = cur.fetchone()
        return self._decode_row(row) if row else None

    def list_requests(self, status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        cur = self.conn.cursor()
        if status:
            cur.execute("""
            SELECT * FROM requests
            WHERE status = ?
            ORDER BY created_at DESC
            LIMIT ?
            """, (status, limit))
        else:
            cur.execute("""
            SELECT * FROM requests
            ORDER BY created_at DESC
            LIMIT ?
            """, (limit,))
        return [self._decode_row(r) for r in cur.fetchall()]

    def update_request(self, request_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Partial update; unknown keys are ignored and updated_at is always stamped."""
        updates = {k: v for k, v in fields.items() if k in REQUEST_COLUMNS}
        updates["updated_at"] = utc_now_iso()

        def _update():
            assignments = ", ".join(f"{column}=?" for column in updates)
            params = [self._encode(c, v) for c, v in updates.items()] + [request_id]
            cur = self.conn.cursor()
            cur.execute(f"UPDATE requests SET {assignments} WHERE id = ?", params)
            self.conn.commit()
            return cur.rowcount

        if not self._execute_with_retry(_update):
            return None
        return self.get_request(request_id)

    def delete_request(self, request_id: str) -> bool:
        def _delete():
            cur = self.conn.cursor()
            cur.execute("DELETE FROM requests WHERE id = ?", (request_id,))
            self.conn.commit()
            return cur.rowcount

        return bool(self._execute_with_retry(_delete))

    # ----------------------------------------------------------------------
    # ITINERARY OPTIONS
    # ----------------------------------------------------------------------
    def set_option(self, request_id: str, option_index: int, option: Optional[dict]) -> Optional[Dict[str, Any]]:
        """Write one slot. A regenerated slot invalidates the current selection."""
        if not 0 <= option_index < OPTION_SLOTS:
            raise InvalidOptionError("Option index must be 0, 1, or 2")

        current = self.get_request(request_id)
        if current is None:
            return None

        slots = padded_slots(current["itinerary_options"]["options"])
        slots[option_index] = option

        return self.update_request(request_id, {
            "itinerary_options": {"options": slots},
            "selected_option": None,
        })

    def select_option(self, request_id: str, option_index: int) -> Optional[Dict[str, Any]]:
        current = self.get_request(request_id)
        if current is None:
            return None

        slots = current["itinerary_options"]["options"]
        if not 0 <= option_index < OPTION_SLOTS or slots[option_index] is None:
            raise InvalidOptionError("Selected itinerary option not found")

        # the token is minted once and reused for every later selection
        public_token = current.get("public_token") or str(uuid4())

        return self.update_request(request_id, {
            "selected_option": option_index,
            "public_token": public_token,
        })

    # ----------------------------------------------------------------------
    # SEND LOG
    # ----------------------------------------------------------------------
    def record_itinerary_send(
        self, request_id: str, option_index: int, option_title: str, itinerary_url: str
    ) -> Optional[Dict[str, Any]]:
        current = self.get_request(request_id)
        if current is None:
            return None

        now = utc_now_iso()
        sent_options = [s for s in current["sent_options"] if isinstance(s, dict)]

        existing = next((s for s in sent_options if s.get("option_index") == option_index), None)
        if existing:
            existing["sent_at"] = now
            existing["itinerary_url"] = itinerary_url
        else:
            sent_options.append(SentOption(
                option_index=option_index,
                sent_at=now,
                option_title=option_title,
                itinerary_url=itinerary_url,
            ).model_dump())

        fields = {
            "last_sent_at": now,
            "last_sent_option": option_index,
            "email_sent_count": current["email_sent_count"] + 1,
            "sent_options": sent_options,
            "status": "follow_up",
        }
        if not current.get("sent_at"):
            fields["sent_at"] = now

        return self.update_request(request_id, fields)

    def append_follow_up(self, request_id: str, entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        current = self.get_request(request_id)
        if current is None:
            return None

        log = [e for e in current["follow_up_emails_sent"] if isinstance(e, dict)]
        log.append(entry)
        log = log[-FOLLOW_UP_LOG_LIMIT:]

        return self.update_request(request_id, {"follow_up_emails_sent": log})

    # ----------------------------------------------------------------------
    # STAFF USERS
    # ----------------------------------------------------------------------
    def create_staff(self, email: str, full_name: str, hashed_password: str) -> int:
        def _create_staff():
            cur = self.conn.cursor()
            cur.execute("""
            INSERT INTO staff_users (email, full_name, hashed_password, created_at)
            VALUES (?, ?, ?, ?)
            """, (email.lower(), full_name, hashed_password, utc_now_iso()))
            self.conn.commit()
            return cur.lastrowid

        return self._execute_with_retry(_create_staff)

    def get_staff_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM staff_users WHERE email = ?", (email.lower(),))
        row = cur.fetchone()
        return dict(row) if row else None

    def get_staff_by_id(self, staff_id: int) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM staff_users WHERE id = ?", (staff_id,))
        row = cur.fetchone()
        return dict(row) if row else None

    def count_staff(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) AS total FROM staff_users")
        return cur.fetchone()["total"]

    # ----------------------------------------------------------------------
    # VEHICLE RESERVATIONS
    # ----------------------------------------------------------------------
    def toggle_reservation(self, vehicle: str, reserved_date: str) -> bool:
        """Flip one day on the vehicle calendar; returns True if now reserved."""
        def _toggle():
            cur = self.conn.cursor()
            cur.execute("""
            DELETE FROM vehicle_reservations
            WHERE vehicle = ? AND reserved_date = ?
            """, (vehicle, reserved_date))
            if cur.rowcount:
                self.conn.commit()
                return False

            cur.execute("""
            INSERT INTO vehicle_reservations (vehicle, reserved_date, created_at)
            VALUES (?, ?, ?)
            """, (vehicle, reserved_date, utc_now_iso()))
            self.conn.commit()
            return True

        return self._execute_with_retry(_toggle)

    def list_reservations(self, vehicle: str, month: Optional[str] = None) -> List[str]:
        cur = self.conn.cursor()
        if month:
            cur.execute("""
            SELECT reserved_date FROM vehicle_reservations
            WHERE vehicle = ? AND reserved_date LIKE ?
            ORDER BY reserved_date
            """, (vehicle, f"{month}-%"))
        else:
            cur.execute("""
            SELECT reserved_date FROM vehicle_reservations
            WHERE vehicle = ?
            ORDER BY reserved_date
            """, (vehicle,))
        return [r["reserved_date"] for r in cur.fetchall()]
