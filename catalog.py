"""Asset Catalog: validated CRUD and search over a department's assets."""
from app_logger import get_logger
from errors import NotFoundError, ValidationError
from storage import ASSET_FIELDS

logger = get_logger("catalog")

REQUIRED_TEXT = {
    "name": "Name",
    "serial_number": "Serial Number",
    "location": "Location",
    "rfid_code": "RFID Code",
}


def _clean_quantity(value):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("Quantity must be a whole number")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    return quantity


def clean_fields(fields, partial=False):
    """Validate and normalise asset fields. Text is stored trimmed."""
    unknown = set(fields) - set(ASSET_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown asset fields: {', '.join(sorted(unknown))}")

    cleaned = {}
    missing = []
    for key, label in REQUIRED_TEXT.items():
        if key not in fields:
            if not partial: missing.append(label)
            continue
        value = "" if fields[key] is None else str(fields[key]).strip()
        if not value:
            missing.append(label)
        cleaned[key] = value
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if "quantity" in fields:
        cleaned["quantity"] = _clean_quantity(fields["quantity"])
    elif not partial:
        cleaned["quantity"] = 1

    if "photo_uri" in fields:
        cleaned["photo_uri"] = (fields["photo_uri"] or "").strip() or None

    return cleaned


class AssetCatalog:
    def __init__(self, storage):
        self.storage = storage

    def _require_department(self, department_id):
        if self.storage.get_department(department_id) is None:
            raise NotFoundError(f"Department {department_id} does not exist")

    def _require_free_rfid(self, rfid_code, asset_id=None):
        owner = self.storage.get_asset_by_rfid(rfid_code)
        if owner and owner["id"] != asset_id:
            raise ValidationError(f"RFID code '{rfid_code}' is already assigned to '{owner['name']}'")

    def create_asset(self, department_id, **fields):
        self._require_department(department_id)
        cleaned = clean_fields(fields)
        self._require_free_rfid(cleaned["rfid_code"])
        asset = self.storage.create_asset(department_id, cleaned)
        logger.info("Created asset %s (%s) in department %s", asset["id"], asset["rfid_code"], department_id)
        return asset

    def get_asset(self, asset_id):
        asset = self.storage.get_asset(asset_id)
        if asset is None:
            raise NotFoundError(f"Asset {asset_id} does not exist")
        return asset

    def find_by_rfid(self, rfid_code):
        return self.storage.get_asset_by_rfid(rfid_code)

    def update_asset(self, asset_id, **changes):
        """Partial update: fields not given keep their value."""
        self.get_asset(asset_id)
        cleaned = clean_fields(changes, partial=True)
        if "rfid_code" in cleaned:
            self._require_free_rfid(cleaned["rfid_code"], asset_id)
        asset = self.storage.update_asset(asset_id, cleaned)
        if asset is None:
            raise NotFoundError(f"Asset {asset_id} does not exist")
        logger.info("Updated asset %s: %s", asset_id, ", ".join(sorted(cleaned)) or "timestamp only")
        return asset

    def delete_asset(self, asset_id):
        if not self.storage.delete_asset(asset_id):
            raise NotFoundError(f"Asset {asset_id} does not exist")
        logger.info("Deleted asset %s", asset_id)

    def list_assets(self, department_id):
        self._require_department(department_id)
        return self.storage.list_assets(department_id)

    def search_assets(self, department_id, query):
        if not (query or "").strip():
            return self.list_assets(department_id)
        self._require_department(department_id)
        return self.storage.search_assets(department_id, query.strip())
