from empdb.logs import TSQ

EMP = {
    "empno": "999999",
    "lastname": "ZZZTEST",
    "firstname": "TEST",
    "midinit": "Q",
    "job": "ANALYST",
    "birthdate": "1980-05-17",
    "hire_date": "2010-01-04",
    "phoneno": "1234",
    "sex": "m",
    "salary": "52750.00",
    "edlevel": 16,
}


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"

    v = client.get("/version")
    assert v.status_code == 200
    assert v.json().get("app") == "empdb-api"


def test_create_search_update_delete(client):
    res = client.post("/api/employees/create", json=EMP)
    assert res.status_code == 201
    assert res.json().get("message") == "ok"

    items = client.get("/api/employees/search", params={"last_name": "zzz"}).json()["items"]
    assert len(items) == 1
    assert items[0]["empno"] == "999999"
    assert items[0]["sex"] == "M"
    assert items[0]["birthdate"] == "1980-05-17"
    assert items[0]["workdept"] is None
    assert items[0]["bonus"] is None
    assert items[0]["salary"] == "52750.00"

    upd = client.post("/api/employees/update", json={**EMP, "job": "MANAGER"})
    assert upd.status_code == 200
    assert upd.json()["updated"] == 1

    items = client.get("/api/employees/search", params={"last_name": "ZZZ"}).json()["items"]
    assert items[0]["job"] == "MANAGER"

    dele = client.post("/api/employees/delete", json={"empno": "999999", "lastname": "ZZZTEST"}, params={"use_jta": True})
    assert dele.status_code == 200
    assert dele.json()["deleted"] == 1
    assert client.get("/api/employees/search", params={"last_name": "ZZZ"}).json()["items"] == []

    logs = client.get("/api/logs/search").json()
    assert logs["total"] == 3
    assert [r["message"] for r in logs["items"]] == [
        "Deleted 999999 with last name: ZZZTEST",
        "Updated 999999 with last name: ZZZTEST",
        "Added 999999 with last name: ZZZTEST",
    ]


def test_create_duplicate_is_conflict(client):
    assert client.post("/api/employees/create", json=EMP).status_code == 201
    res = client.post("/api/employees/create", json=EMP, params={"use_jta": True})
    assert res.status_code == 409


def test_create_without_empno_is_bad_request(client):
    res = client.post("/api/employees/create", json={**EMP, "empno": ""})
    assert res.status_code == 400


def test_invalid_body_is_rejected(client):
    res = client.post("/api/employees/create", json={**EMP, "sex": "MALE"})
    assert res.status_code == 422


def test_delete_missing_employee(client):
    res = client.post("/api/employees/delete", json={"empno": "000000"})
    assert res.status_code == 200
    assert res.json()["deleted"] == 0

    client.post("/api/settings/update", json={"updates": {"strict_not_found": True}})
    res = client.post("/api/employees/delete", json={"empno": "000000"})
    assert res.status_code == 404


def test_log_failure_is_internal_error(client, monkeypatch):
    def boom(self, message):
        raise RuntimeError("queue down")

    monkeypatch.setattr(TSQ, "write_string", boom)
    res = client.post("/api/employees/create", json=EMP)
    assert res.status_code == 500
    assert res.json()["detail"] == "internal error"
    assert client.get("/api/employees/search", params={"last_name": "ZZZ"}).json()["items"] == []


def test_settings_roundtrip(client):
    assert client.get("/api/settings/get").json() == {"use_jta": False, "strict_not_found": False}
    res = client.post("/api/settings/update", json={"updates": {"use_jta": "true"}})
    assert res.status_code == 200
    assert res.json()["updated"] == ["use_jta"]
    assert client.get("/api/settings/get").json()["use_jta"] is True

    bad = client.post("/api/settings/update", json={"updates": {"nope": 1}})
    assert bad.status_code == 400
