# tests/test_users.py
from fastapi.testclient import TestClient
from marketstore.main import app

client = TestClient(app)


def reset():
    client.post("/reset")


def test_create_and_verify_user():
    reset()
    r = client.post("/create_user", json={"name": "Asha", "email": "Asha@Farm.IO", "role": "producer",
                                          "region": "Kerala", "farmSize": "2 acres"})
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == "asha@farm.io"
    assert user["role"] == "producer"
    assert user["region"] == "Kerala"
    assert user["farm_size"] == "2 acres"
    assert user["schema_version"] == 1

    r = client.post("/user_verification", json={"email": "ASHA@farm.io "})
    assert r.status_code == 200
    body = r.json()
    assert body["exists"] is True
    assert body["user"]["id"] == user["id"]


def test_verify_unknown_user():
    reset()
    r = client.post("/user_verification", json={"email": "nobody@farm.io"})
    assert r.json() == {"exists": False}


def test_verify_requires_email():
    reset()
    r = client.post("/user_verification", json={})
    assert r.status_code == 400
    assert r.json()["field"] == "email"


def test_case_only_duplicate_conflicts():
    reset()
    client.post("/create_user", json={"name": "Ravi", "email": "ravi@farm.io", "role": "buyer"})
    r = client.post("/create_user", json={"name": "Ravi 2", "email": "RAVI@farm.io", "role": "buyer"})
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"


def test_invalid_role():
    reset()
    r = client.post("/create_user", json={"name": "Z", "email": "z@farm.io", "role": "wizard"})
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_role"
    assert client.post("/user_verification", json={"email": "z@farm.io"}).json()["exists"] is False


def test_missing_fields():
    reset()
    r = client.post("/create_user", json={"email": "z@farm.io", "role": "buyer"})
    assert r.status_code == 400
    assert r.json()["field"] == "name"
    r = client.post("/create_user", json={"name": "Z", "email": "z@farm.io"})
    assert r.json()["field"] == "role"


def test_unknown_attribute_rejected():
    reset()
    r = client.post("/create_user", json={"name": "Z", "email": "z@farm.io", "role": "buyer", "is_admin": True})
    assert r.status_code == 400
    assert r.json()["field"] == "is_admin"


def test_numeric_profile_value_stored_as_string():
    reset()
    r = client.post("/create_user", json={"name": "Z", "email": "z@farm.io", "role": "official", "age": 41})
    assert r.status_code == 201
    assert r.json()["age"] == "41"


def test_get_user_by_email():
    reset()
    client.post("/create_user", json={"name": "Mei", "email": "mei@farm.io", "role": "administrator"})
    r = client.get("/api/user/MEI@farm.io")
    assert r.status_code == 200
    assert r.json()["name"] == "Mei"
    assert client.get("/api/user/ghost@farm.io").status_code == 404
