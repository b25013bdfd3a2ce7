"""Persistence adapter contract and backend selection.

Records cross this boundary as plain dicts:

* user:       id, username, password_hash, created_at
* department: id, name, user_id, created_at
* asset:      id, name, serial_number, quantity, location, photo_uri,
              rfid_code, department_id, created_at, updated_at
* session:    id, name, date, department_id, created_at, closed_at
* scan:       id, session_id, rfid_code, timestamp

Timestamps are ``datetime`` objects. Listings of assets and sessions are
newest first, scans oldest first; ties fall back to the id.
"""
import abc

import config
from app_logger import get_logger

logger = get_logger("storage")

ASSET_FIELDS = ("name", "serial_number", "quantity", "location", "photo_uri", "rfid_code")
SEARCH_FIELDS = ("name", "serial_number", "rfid_code", "location")


class StorageAdapter(abc.ABC):

    def close(self):
        """Release connections or file handles. Optional."""

    # --- USERS / DEPARTMENTS ---
    @abc.abstractmethod
    def create_user(self, username, password_hash): ...

    @abc.abstractmethod
    def get_user(self):
        """The single local user, or None before setup."""

    @abc.abstractmethod
    def get_user_by_name(self, username): ...

    @abc.abstractmethod
    def create_department(self, name, user_id): ...

    @abc.abstractmethod
    def get_department(self, department_id): ...

    @abc.abstractmethod
    def get_department_for_user(self, user_id): ...

    @abc.abstractmethod
    def delete_department(self, department_id):
        """Delete a department with its assets, sessions and their scans."""

    # --- ASSETS ---
    @abc.abstractmethod
    def create_asset(self, department_id, fields):
        """Insert an asset. Raises ValidationError if the RFID code is taken."""

    @abc.abstractmethod
    def get_asset(self, asset_id): ...

    @abc.abstractmethod
    def get_asset_by_rfid(self, rfid_code): ...

    @abc.abstractmethod
    def update_asset(self, asset_id, fields):
        """Apply a partial update and refresh updated_at. Returns the asset or None."""

    @abc.abstractmethod
    def delete_asset(self, asset_id):
        """Hard delete. Returns False when nothing matched."""

    @abc.abstractmethod
    def list_assets(self, department_id): ...

    @abc.abstractmethod
    def search_assets(self, department_id, query):
        """Case-insensitive substring match over SEARCH_FIELDS."""

    # --- INVENTORY ---
    @abc.abstractmethod
    def create_inventory_session(self, name, department_id): ...

    @abc.abstractmethod
    def get_inventory_session(self, session_id): ...

    @abc.abstractmethod
    def list_inventory_sessions(self, department_id): ...

    @abc.abstractmethod
    def close_inventory_session(self, session_id, closed_at): ...

    @abc.abstractmethod
    def delete_inventory_session(self, session_id):
        """Delete a session and its scans."""

    @abc.abstractmethod
    def add_scan(self, session_id, rfid_code): ...

    @abc.abstractmethod
    def list_scans(self, session_id): ...


def open_storage(backend=None, location=None):
    """Build the adapter chosen in config (or by the caller)."""
    backend = backend or config.STORAGE_BACKEND

    if backend == "sql":
        from database import Database
        adapter = Database(location or config.DB_NAME)
    elif backend == "document":
        from document_store import DocumentStore
        adapter = DocumentStore(location or config.DOCUMENT_STORE_PATH)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    logger.info("Using %s storage backend", backend)
    return adapter
