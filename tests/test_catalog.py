import pytest

from errors import NotFoundError, ValidationError


def test_create_asset_stores_trimmed_fields(catalog, department):
    asset = catalog.create_asset(department["id"], name="  Projector ", serial_number="PJ-1",
                                 quantity=2, location="Hall A", rfid_code=" X1 ")
    assert asset["id"] is not None
    assert asset["name"] == "Projector"
    assert asset["rfid_code"] == "X1"
    assert asset["quantity"] == 2
    assert asset["photo_uri"] is None
    assert asset["department_id"] == department["id"]
    assert asset["created_at"] == asset["updated_at"]


@pytest.mark.parametrize("field", ["name", "serial_number", "location", "rfid_code"])
def test_required_text_fields(catalog, department, field):
    fields = dict(name="Desk", serial_number="D-1", quantity=1, location="Room 2", rfid_code="X9")
    fields[field] = "   "
    with pytest.raises(ValidationError):
        catalog.create_asset(department["id"], **fields)
    assert catalog.list_assets(department["id"]) == []


@pytest.mark.parametrize("quantity", [0, -3, 1.5, "two", None, True])
def test_quantity_must_be_positive_integer(catalog, department, quantity):
    with pytest.raises(ValidationError):
        catalog.create_asset(department["id"], name="Desk", serial_number="D-1",
                             quantity=quantity, location="Room 2", rfid_code="X9")


def test_duplicate_rfid_rejected_and_nothing_written(catalog, department, make_asset):
    make_asset("X1")
    with pytest.raises(ValidationError):
        make_asset("X1", name="Second")
    assets = catalog.list_assets(department["id"])
    assert [a["rfid_code"] for a in assets] == ["X1"]


def test_rfid_unique_across_departments(storage, catalog, make_asset):
    make_asset("X1")
    other_user = storage.create_user("other", "hash")
    other = storage.create_department("Labs", other_user["id"])
    with pytest.raises(ValidationError):
        catalog.create_asset(other["id"], name="Scope", serial_number="S", quantity=1,
                             location="Lab", rfid_code="X1")


def test_serial_number_need_not_be_unique(make_asset):
    make_asset("X1", serial_number="SAME")
    make_asset("X2", serial_number="SAME")


def test_create_in_unknown_department(catalog):
    with pytest.raises(NotFoundError):
        catalog.create_asset(999, name="Desk", serial_number="D", quantity=1,
                             location="R", rfid_code="X1")


def test_list_is_newest_first(catalog, department, make_asset):
    for code in ("X1", "X2", "X3"):
        make_asset(code)
    assert [a["rfid_code"] for a in catalog.list_assets(department["id"])] == ["X3", "X2", "X1"]


def test_partial_update_keeps_other_fields(catalog, make_asset):
    asset = make_asset("X1", location="Hall A", quantity=4)
    updated = catalog.update_asset(asset["id"], location="Hall B")
    assert updated["location"] == "Hall B"
    assert updated["quantity"] == 4
    assert updated["name"] == asset["name"]
    assert updated["updated_at"] >= asset["updated_at"]
    assert updated["created_at"] == asset["created_at"]


def test_update_refreshes_timestamp_even_without_changes(catalog, make_asset):
    asset = make_asset("X1")
    updated = catalog.update_asset(asset["id"])
    assert updated["updated_at"] >= asset["updated_at"]


def test_update_to_taken_rfid_fails(catalog, make_asset):
    make_asset("X1")
    second = make_asset("X2")
    with pytest.raises(ValidationError):
        catalog.update_asset(second["id"], rfid_code="X1")
    assert catalog.get_asset(second["id"])["rfid_code"] == "X2"


def test_update_may_keep_own_rfid(catalog, make_asset):
    asset = make_asset("X1")
    assert catalog.update_asset(asset["id"], rfid_code="X1", name="Renamed")["name"] == "Renamed"


def test_update_rejects_unknown_fields_and_bad_values(catalog, make_asset):
    asset = make_asset("X1")
    with pytest.raises(ValidationError):
        catalog.update_asset(asset["id"], colour="red")
    with pytest.raises(ValidationError):
        catalog.update_asset(asset["id"], quantity=0)
    with pytest.raises(ValidationError):
        catalog.update_asset(asset["id"], name="")


def test_update_and_delete_unknown_asset(catalog):
    with pytest.raises(NotFoundError):
        catalog.update_asset(404, name="Ghost")
    with pytest.raises(NotFoundError):
        catalog.delete_asset(404)


def test_delete_is_permanent(catalog, department, make_asset):
    asset = make_asset("X1")
    catalog.delete_asset(asset["id"])
    assert catalog.list_assets(department["id"]) == []
    assert catalog.find_by_rfid("X1") is None
    with pytest.raises(NotFoundError):
        catalog.get_asset(asset["id"])
    # the code is free again
    make_asset("X1")


def test_search_is_case_insensitive_over_four_fields(catalog, department, make_asset):
    make_asset("TAG-001", name="Laptop", location="Library")
    make_asset("TAG-002", name="Chair", location="Office", serial_number="LX-77")
    make_asset("ZZ-003", name="Desk", location="Lobby")

    def codes(query):
        return [a["rfid_code"] for a in catalog.search_assets(department["id"], query)]

    assert codes("laptop") == ["TAG-001"]
    assert codes("lx-") == ["TAG-002"]
    assert codes("tag") == ["TAG-002", "TAG-001"]
    assert codes("LOBBY") == ["ZZ-003"]
    assert codes("l") == ["ZZ-003", "TAG-002", "TAG-001"]
    assert codes("nothing") == []


def test_search_treats_wildcards_literally(catalog, department, make_asset):
    make_asset("A_1", name="100% cotton")
    make_asset("AB1", name="Bench")
    assert [a["rfid_code"] for a in catalog.search_assets(department["id"], "_")] == ["A_1"]
    assert [a["rfid_code"] for a in catalog.search_assets(department["id"], "%")] == ["A_1"]


def test_blank_search_returns_everything(catalog, department, make_asset):
    make_asset("X1")
    make_asset("X2")
    assert len(catalog.search_assets(department["id"], "  ")) == 2


def test_catalog_is_scoped_by_department(storage, catalog, department, make_asset):
    make_asset("X1")
    other_user = storage.create_user("other", "hash")
    other = storage.create_department("Labs", other_user["id"])
    assert catalog.list_assets(other["id"]) == []
    assert catalog.search_assets(other["id"], "X1") == []
