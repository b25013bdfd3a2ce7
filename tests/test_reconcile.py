import pytest

from errors import NotFoundError


def codes(assets):
    return [a["rfid_code"] for a in assets]


def run_session(sessions, scan_log, department, scanned):
    session = sessions.start_session("Count", department["id"])
    for code in scanned:
        scan_log.record_scan(session["id"], code)
    return session


def test_partial_scan(engine, sessions, scan_log, department, make_asset):
    a = make_asset("X1")
    b = make_asset("X2")
    session = run_session(sessions, scan_log, department, ["X1"])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == [a]
    assert result.missing == [b]
    assert codes(result.scanned) == ["X1"]


def test_empty_scan_log_means_everything_missing(engine, sessions, scan_log, department, make_asset):
    a = make_asset("X1")
    session = run_session(sessions, scan_log, department, [])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == []
    assert result.missing == [a]
    assert result.scanned == []


def test_empty_catalog(engine, sessions, scan_log, department):
    session = run_session(sessions, scan_log, department, ["X1", "X2"])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == []
    assert result.missing == []
    assert len(result.scanned) == 2
    assert result.unknown_codes == ["X1", "X2"]


def test_duplicate_scans_count_once(engine, sessions, scan_log, department, make_asset):
    a = make_asset("X1")
    session = run_session(sessions, scan_log, department, ["X1", "X1", "X1"])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == [a]
    assert result.missing == []
    assert len(result.scanned) == 3

    once = run_session(sessions, scan_log, department, ["X1"])
    single = engine.reconcile(once["id"], department["id"])
    assert single.found == result.found
    assert single.missing == result.missing


def test_deleted_asset_disappears_but_scan_remains(engine, catalog, sessions, scan_log, department, make_asset):
    a = make_asset("X1")
    b = make_asset("X2")
    session = run_session(sessions, scan_log, department, ["X1"])
    catalog.delete_asset(a["id"])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == []
    assert result.missing == [b]
    assert codes(result.scanned) == ["X1"]
    assert result.unknown_codes == ["X1"]


def test_asset_added_after_session_start_is_compared(engine, sessions, scan_log, department, make_asset):
    session = run_session(sessions, scan_log, department, ["LATE"])
    late = make_asset("LATE")
    never = make_asset("NEVER")

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == [late]
    assert result.missing == [never]


def test_unmatched_codes_only_in_scanned(engine, sessions, scan_log, department, make_asset):
    make_asset("X1")
    make_asset("X2")
    session = run_session(sessions, scan_log, department, ["STRAY", "X2", "STRAY", "OTHER"])

    result = engine.reconcile(session["id"], department["id"])
    partitioned = codes(result.found) + codes(result.missing)
    assert "STRAY" not in partitioned
    assert "OTHER" not in partitioned
    assert codes(result.scanned) == ["STRAY", "X2", "STRAY", "OTHER"]
    assert result.unknown_codes == ["STRAY", "OTHER"]
    assert result.counts == {"total": 2, "found": 1, "missing": 1, "scans": 4, "unknown": 2}


def test_matching_is_case_sensitive_and_untrimmed(engine, sessions, scan_log, department, make_asset):
    a = make_asset("ABC")
    session = run_session(sessions, scan_log, department, ["abc", "ABC "])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == []
    assert result.missing == [a]


def test_partition_is_complete_disjoint_and_in_catalog_order(engine, catalog, sessions, scan_log,
                                                            department, make_asset):
    for code in ("A", "B", "C", "D", "E"):
        make_asset(code)
    session = run_session(sessions, scan_log, department, ["B", "E", "Q"])

    result = engine.reconcile(session["id"], department["id"])
    current = catalog.list_assets(department["id"])
    found_ids = {a["id"] for a in result.found}
    missing_ids = {a["id"] for a in result.missing}
    assert found_ids | missing_ids == {a["id"] for a in current}
    assert not found_ids & missing_ids
    assert codes(result.found) == ["E", "B"]
    assert codes(result.missing) == ["D", "C", "A"]


def test_reconcile_is_idempotent(engine, sessions, scan_log, department, make_asset):
    make_asset("X1")
    make_asset("X2")
    session = run_session(sessions, scan_log, department, ["X2", "junk"])

    first = engine.reconcile(session["id"], department["id"])
    second = engine.reconcile(session["id"], department["id"])
    assert first == second


def test_reconcile_only_reads_the_given_department(storage, engine, catalog, sessions, scan_log,
                                                   department, make_asset):
    mine = make_asset("X1")
    other_user = storage.create_user("other", "hash")
    other = storage.create_department("Labs", other_user["id"])
    catalog.create_asset(other["id"], name="Scope", serial_number="S", quantity=1, location="Lab", rfid_code="X2")
    session = run_session(sessions, scan_log, department, ["X1", "X2"])

    result = engine.reconcile(session["id"], department["id"])
    assert result.found == [mine]
    assert result.missing == []


def test_reconcile_works_on_closed_session(engine, sessions, scan_log, department, make_asset):
    a = make_asset("X1")
    session = run_session(sessions, scan_log, department, ["X1"])
    sessions.close_session(session["id"])
    sessions.end_session()
    assert engine.reconcile(session["id"], department["id"]).found == [a]


def test_unknown_department(engine, sessions, scan_log, department):
    session = run_session(sessions, scan_log, department, [])
    with pytest.raises(NotFoundError):
        engine.reconcile(session["id"], 4242)


def test_unknown_session(engine, department):
    with pytest.raises(NotFoundError):
        engine.reconcile(4242, department["id"])
