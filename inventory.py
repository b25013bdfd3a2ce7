"""Inventory sessions, the scan log, and reconciliation.

A session collects raw RFID reads. Reconciliation compares the distinct
codes read in a session against the department's *current* catalog:
assets added after the session started are counted, deleted ones are not.
Scans are linked to assets only by code value, so a read of an unknown or
deleted tag is kept in the log but never matches anything.
"""
from dataclasses import dataclass, field
from datetime import datetime

from app_logger import get_logger
from errors import NotFoundError, StateError, ValidationError

logger = get_logger("inventory")


class SessionManager:
    """Starts and closes inventory sessions for one client.

    ``current`` is a convenience handle for the UI only; every scan-log
    and reconciliation call takes the session id explicitly.
    """

    def __init__(self, storage):
        self.storage = storage
        self.current = None

    def start_session(self, name, department_id):
        if not (name or "").strip():
            raise ValidationError("Inventory name is required")
        if self.storage.get_department(department_id) is None:
            raise NotFoundError(f"Department {department_id} does not exist")

        session = self.storage.create_inventory_session(name.strip(), department_id)
        self.current = session
        logger.info("Started inventory session %s (%s)", session["id"], session["name"])
        return session

    def end_session(self):
        """Drop the client-side handle. Nothing is persisted."""
        self.current = None

    def close_session(self, session_id):
        """Stamp closed_at so the session no longer accepts scans."""
        session = self.storage.get_inventory_session(session_id)
        if session is None:
            raise NotFoundError(f"Inventory session {session_id} does not exist")
        if session["closed_at"] is not None:
            return session
        session = self.storage.close_inventory_session(session_id, datetime.now())
        logger.info("Closed inventory session %s", session_id)
        return session

    def list_sessions(self, department_id):
        if self.storage.get_department(department_id) is None:
            raise NotFoundError(f"Department {department_id} does not exist")
        return self.storage.list_inventory_sessions(department_id)


class ScanLog:
    """Append-only record of codes read during a session. Duplicates are kept."""

    def __init__(self, storage):
        self.storage = storage

    def record_scan(self, session_id, rfid_code):
        if session_id is None:
            raise StateError("No active inventory session")
        session = self.storage.get_inventory_session(session_id)
        if session is None:
            raise StateError(f"Inventory session {session_id} has not been started")
        if session["closed_at"] is not None:
            raise StateError(f"Inventory session '{session['name']}' is already closed")
        if not isinstance(rfid_code, str) or not rfid_code:
            raise ValidationError("RFID code is required")

        scan = self.storage.add_scan(session_id, rfid_code)
        logger.debug("Session %s scanned %r", session_id, rfid_code)
        return scan

    def list_scans(self, session_id):
        """All scans of the session, oldest first. Re-reads storage each call."""
        return self.storage.list_scans(session_id)


@dataclass
class InventoryResult:
    found: list = field(default_factory=list)
    missing: list = field(default_factory=list)
    scanned: list = field(default_factory=list)

    @property
    def unknown_codes(self):
        """Distinct scanned codes that matched no asset, in first-seen order."""
        known = {a["rfid_code"] for a in self.found}
        seen = []
        for scan in self.scanned:
            code = scan["rfid_code"]
            if code not in known and code not in seen:
                seen.append(code)
        return seen

    @property
    def counts(self):
        return {
            "total": len(self.found) + len(self.missing),
            "found": len(self.found),
            "missing": len(self.missing),
            "scans": len(self.scanned),
            "unknown": len(self.unknown_codes),
        }


class ReconciliationEngine:
    def __init__(self, storage, scan_log=None):
        self.storage = storage
        self.scan_log = scan_log or ScanLog(storage)

    def reconcile(self, session_id, department_id):
        if self.storage.get_department(department_id) is None:
            raise NotFoundError(f"Department {department_id} does not exist")
        if self.storage.get_inventory_session(session_id) is None:
            raise NotFoundError(f"Inventory session {session_id} does not exist")

        assets = self.storage.list_assets(department_id)
        scans = self.scan_log.list_scans(session_id)
        observed = {scan["rfid_code"] for scan in scans}

        result = InventoryResult(
            found=[a for a in assets if a["rfid_code"] in observed],
            missing=[a for a in assets if a["rfid_code"] not in observed],
            scanned=scans,
        )
        logger.info("Reconciled session %s: %s found, %s missing, %s scans",
                    session_id, len(result.found), len(result.missing), len(scans))
        return result
