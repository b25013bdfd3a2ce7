# config.py
import os

APP_VERSION = "1.4 Field Inventory"
APP_TITLE = "Asset Tracker"

# Storage
DB_NAME = os.getenv("ASSET_TRACKER_DB", "asset_inventory.db")
STORAGE_BACKEND = os.getenv("ASSET_TRACKER_BACKEND", "sql")   # "sql" or "document"
DOCUMENT_STORE_PATH = os.getenv("ASSET_TRACKER_STORE", "asset_inventory.json")

# Asset photos
PHOTOS_DIR = os.getenv("ASSET_TRACKER_PHOTOS", "photos")

# Launcher
SERVER_PORT = os.getenv("ASSET_TRACKER_PORT", "8501")

# Logging
LOG_LEVEL = os.getenv("ASSET_TRACKER_LOG_LEVEL", "INFO").upper()

# Export
CSV_HEADERS = ["Name", "Serial Number", "Quantity", "Location", "RFID Code"]
CSV_FIELDS = ["name", "serial_number", "quantity", "location", "rfid_code"]

# Asset table columns shown in the UI
ASSET_COLUMNS = {
    "name": "Name",
    "serial_number": "Serial Number",
    "quantity": "Quantity",
    "location": "Location",
    "rfid_code": "RFID Code",
    "created_at": "Date Added",
    "updated_at": "Last Modified",
}

# Generic user-facing messages, keyed by error class name
ERROR_MESSAGES = {
    "ValidationError": "Please check the highlighted input",
    "StateError": "This action is not available right now",
    "NotFoundError": "The requested record no longer exists",
    "StorageError": "The local database could not complete the operation",
    "AssetTrackerError": "Something went wrong",
}
