"""Key-scoped JSON document store.

Fallback backend for machines where the embedded SQL database is not
wanted. Every record kind lives under its own key as a list of dicts, and
the whole document is rewritten after each change. With ``path=None`` the
store is memory-only.
"""
import contextlib
import copy
import json
import os
from datetime import datetime

from app_logger import get_logger
from errors import StorageError, ValidationError
from storage import StorageAdapter, ASSET_FIELDS, SEARCH_FIELDS

logger = get_logger("document_store")

USERS = "users"
DEPARTMENTS = "departments"
ASSETS = "assets"
INVENTORY_SESSIONS = "inventory_sessions"
INVENTORY_SCANS = "inventory_scans"

KEYS = (USERS, DEPARTMENTS, ASSETS, INVENTORY_SESSIONS, INVENTORY_SCANS)
DATE_FIELDS = ("created_at", "updated_at", "date", "closed_at", "timestamp")


def _encode(record):
    out = dict(record)
    for field in DATE_FIELDS:
        if isinstance(out.get(field), datetime):
            out[field] = out[field].isoformat()
    return out


def _decode(record):
    out = dict(record)
    for field in DATE_FIELDS:
        if isinstance(out.get(field), str):
            out[field] = datetime.fromisoformat(out[field])
    return out


def _next_id(items):
    return max((i["id"] for i in items), default=0) + 1


def _newest_first(items):
    return sorted(items, key=lambda r: (r["created_at"], r["id"]), reverse=True)


class DocumentStore(StorageAdapter):
    def __init__(self, path=None):
        self.path = path
        self.data = {key: [] for key in KEYS}
        if path and os.path.exists(path):
            self._load()

    def _load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Could not read document store %s: %s", self.path, e)
            raise StorageError(f"Could not read {self.path}") from e
        for key in KEYS:
            self.data[key] = [_decode(r) for r in raw.get(key, [])]

    def _save(self):
        if not self.path:
            return
        payload = {key: [_encode(r) for r in self.data[key]] for key in KEYS}
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Could not write document store %s: %s", self.path, e)
            raise StorageError(f"Could not write {self.path}") from e

    @contextlib.contextmanager
    def _writing(self):
        """Persist the changes made in the block, or put memory back as it was."""
        snapshot = copy.deepcopy(self.data)
        try:
            yield
            self._save()
        except StorageError:
            self.data = snapshot
            raise

    def _insert(self, key, record):
        with self._writing():
            record["id"] = _next_id(self.data[key])
            self.data[key].append(record)
        return copy.deepcopy(record)

    def _find(self, key, **filters):
        for record in self.data[key]:
            if all(record.get(k) == v for k, v in filters.items()):
                return record
        return None

    def _get(self, key, **filters):
        record = self._find(key, **filters)
        return copy.deepcopy(record) if record else None

    def _filter(self, key, predicate):
        return [copy.deepcopy(r) for r in self.data[key] if predicate(r)]

    # --- USERS / DEPARTMENTS ---
    def create_user(self, username, password_hash):
        if self._find(USERS, username=username):
            raise ValidationError("Username already exists")
        return self._insert(USERS, {
            "username": username,
            "password_hash": password_hash,
            "created_at": datetime.now(),
        })

    def get_user(self):
        users = sorted(self.data[USERS], key=lambda u: u["id"])
        return copy.deepcopy(users[0]) if users else None

    def get_user_by_name(self, username):
        return self._get(USERS, username=username)

    def create_department(self, name, user_id):
        return self._insert(DEPARTMENTS, {
            "name": name,
            "user_id": user_id,
            "created_at": datetime.now(),
        })

    def get_department(self, department_id):
        return self._get(DEPARTMENTS, id=department_id)

    def get_department_for_user(self, user_id):
        return self._get(DEPARTMENTS, user_id=user_id)

    def delete_department(self, department_id):
        if not self._find(DEPARTMENTS, id=department_id):
            return False
        session_ids = {s["id"] for s in self.data[INVENTORY_SESSIONS] if s["department_id"] == department_id}
        with self._writing():
            self.data[INVENTORY_SCANS] = [s for s in self.data[INVENTORY_SCANS] if s["session_id"] not in session_ids]
            self.data[INVENTORY_SESSIONS] = [s for s in self.data[INVENTORY_SESSIONS] if s["id"] not in session_ids]
            self.data[ASSETS] = [a for a in self.data[ASSETS] if a["department_id"] != department_id]
            self.data[DEPARTMENTS] = [d for d in self.data[DEPARTMENTS] if d["id"] != department_id]
        return True

    # --- ASSETS ---
    def _check_rfid_free(self, rfid_code, asset_id=None):
        owner = self._find(ASSETS, rfid_code=rfid_code)
        if owner and owner["id"] != asset_id:
            raise ValidationError("RFID code is already assigned to another asset")

    def create_asset(self, department_id, fields):
        self._check_rfid_free(fields.get("rfid_code"))
        now = datetime.now()
        record = {k: fields.get(k) for k in ASSET_FIELDS}
        record.update(department_id=department_id, created_at=now, updated_at=now)
        return self._insert(ASSETS, record)

    def get_asset(self, asset_id):
        return self._get(ASSETS, id=asset_id)

    def get_asset_by_rfid(self, rfid_code):
        return self._get(ASSETS, rfid_code=rfid_code)

    def update_asset(self, asset_id, fields):
        asset = self._find(ASSETS, id=asset_id)
        if not asset:
            return None
        if "rfid_code" in fields:
            self._check_rfid_free(fields["rfid_code"], asset_id)
        with self._writing():
            for key, value in fields.items():
                if key in ASSET_FIELDS:
                    asset[key] = value
            asset["updated_at"] = datetime.now()
        return copy.deepcopy(asset)

    def delete_asset(self, asset_id):
        if not self._find(ASSETS, id=asset_id):
            return False
        with self._writing():
            self.data[ASSETS] = [a for a in self.data[ASSETS] if a["id"] != asset_id]
        return True

    def list_assets(self, department_id):
        return _newest_first(self._filter(ASSETS, lambda a: a["department_id"] == department_id))

    def search_assets(self, department_id, query):
        needle = query.lower()

        def matches(asset):
            return asset["department_id"] == department_id and any(
                needle in (asset.get(field) or "").lower() for field in SEARCH_FIELDS)

        return _newest_first(self._filter(ASSETS, matches))

    # --- INVENTORY ---
    def create_inventory_session(self, name, department_id):
        now = datetime.now()
        return self._insert(INVENTORY_SESSIONS, {
            "name": name,
            "date": now,
            "department_id": department_id,
            "created_at": now,
            "closed_at": None,
        })

    def get_inventory_session(self, session_id):
        return self._get(INVENTORY_SESSIONS, id=session_id)

    def list_inventory_sessions(self, department_id):
        return _newest_first(self._filter(INVENTORY_SESSIONS, lambda s: s["department_id"] == department_id))

    def close_inventory_session(self, session_id, closed_at):
        inv = self._find(INVENTORY_SESSIONS, id=session_id)
        if not inv:
            return None
        with self._writing():
            inv["closed_at"] = closed_at
        return copy.deepcopy(inv)

    def delete_inventory_session(self, session_id):
        if not self._find(INVENTORY_SESSIONS, id=session_id):
            return False
        with self._writing():
            self.data[INVENTORY_SCANS] = [s for s in self.data[INVENTORY_SCANS] if s["session_id"] != session_id]
            self.data[INVENTORY_SESSIONS] = [s for s in self.data[INVENTORY_SESSIONS] if s["id"] != session_id]
        return True

    def add_scan(self, session_id, rfid_code):
        return self._insert(INVENTORY_SCANS, {
            "session_id": session_id,
            "rfid_code": rfid_code,
            "timestamp": datetime.now(),
        })

    def list_scans(self, session_id):
        scans = self._filter(INVENTORY_SCANS, lambda s: s["session_id"] == session_id)
        return sorted(scans, key=lambda s: (s["timestamp"], s["id"]))
