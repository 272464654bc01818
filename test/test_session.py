import json

from hrms_client.session import SessionStore

EMPLOYEE = {"id": 7, "employee_id": "EMP007", "employee_name": "Kiran Das"}


def test_empty_store(tmp_path):
    store = SessionStore(str(tmp_path / "session.json"))

    assert not store.is_authenticated
    assert store.employee is None
    assert store.access_token is None


def test_save_and_reload(tmp_path):
    path = tmp_path / "session.json"
    SessionStore(str(path)).save(EMPLOYEE, "jwt-token")

    store = SessionStore(str(path))

    assert store.is_authenticated
    assert store.employee == EMPLOYEE
    assert store.access_token == "jwt-token"


def test_clear(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(str(path))
    store.save(EMPLOYEE, "jwt-token")

    store.clear()

    assert not store.is_authenticated
    assert not path.exists()


def test_corrupt_file_is_removed(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")

    store = SessionStore(str(path))

    assert not store.is_authenticated
    assert not path.exists()


def test_file_without_employee_is_removed(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"access_token": "orphan"}))

    store = SessionStore(str(path))

    assert not store.is_authenticated
    assert not path.exists()


def test_update_employee_keeps_token(tmp_path):
    store = SessionStore(str(tmp_path / "session.json"))
    store.save(EMPLOYEE, "jwt-token")

    store.update_employee({**EMPLOYEE, "employee_name": "Kiran D."})

    assert store.employee["employee_name"] == "Kiran D."
    assert store.access_token == "jwt-token"
