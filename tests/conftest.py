import pytest

from catalog import AssetCatalog
from database import Database
from document_store import DocumentStore
from inventory import ReconciliationEngine, ScanLog, SessionManager


@pytest.fixture(params=["sql", "document"])
def storage(request, tmp_path):
    if request.param == "sql":
        adapter = Database(tmp_path / "test.db")
    else:
        adapter = DocumentStore(None)
    yield adapter
    adapter.close()


@pytest.fixture
def department(storage):
    user = storage.create_user("operator", "not-a-real-hash")
    return storage.create_department("Facilities", user["id"])


@pytest.fixture
def catalog(storage):
    return AssetCatalog(storage)


@pytest.fixture
def sessions(storage):
    return SessionManager(storage)


@pytest.fixture
def scan_log(storage):
    return ScanLog(storage)


@pytest.fixture
def engine(storage):
    return ReconciliationEngine(storage)


@pytest.fixture
def make_asset(catalog, department):
    def _make(rfid_code, name=None, **extra):
        fields = dict(name=name or f"Asset {rfid_code}", serial_number=f"SN-{rfid_code}",
                      quantity=1, location="Store Room")
        fields.update(extra)
        return catalog.create_asset(department["id"], rfid_code=rfid_code, **fields)
    return _make
