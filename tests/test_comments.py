# tests/test_comments.py
from datetime import timedelta
from fastapi.testclient import TestClient
from marketstore.main import app
from marketstore.database import COMMENTS

client = TestClient(app)


def reset():
    client.post("/reset")


def comment(pid, user, text):
    return client.post("/comments", json={"productId": pid, "user": user, "comment": text})


def test_first_comment_creates_thread():
    reset()
    r = comment("p1", "Asha", "Great quality")
    assert r.status_code == 201
    thread = r.json()
    assert thread["product_id"] == "p1"
    assert [c["comment"] for c in thread["comments"]] == ["Great quality"]
    assert "p1" in COMMENTS


def test_missing_field_is_named():
    reset()
    r = client.post("/comments", json={"productId": "p1", "user": "Asha"})
    assert r.status_code == 400
    assert r.json()["field"] == "comment"
    r = client.post("/comments", json={"user": "Asha", "comment": "hi"})
    assert r.json()["field"] == "productId"
    assert COMMENTS == {}


def test_empty_thread_for_unknown_product():
    reset()
    r = client.get("/comments/nothing-here")
    assert r.status_code == 200
    assert r.json() == {"product_id": "nothing-here", "comments": []}


def test_newest_first_and_default_limit():
    reset()
    for i in range(7):
        comment("p1", "user", f"c{i}")
    body = client.get("/comments/p1").json()
    assert [c["comment"] for c in body["comments"]] == ["c6", "c5", "c4", "c3", "c2"]


def test_explicit_limit():
    reset()
    for i in range(4):
        comment("p1", "user", f"c{i}")
    body = client.get("/comments/p1", params={"limit": 2}).json()
    assert [c["comment"] for c in body["comments"]] == ["c3", "c2"]
    body = client.get("/comments/p1", params={"limit": 50}).json()
    assert len(body["comments"]) == 4


def test_sorted_by_date_not_insertion():
    reset()
    comment("p1", "a", "older")
    comment("p1", "b", "newer")
    entries = COMMENTS["p1"]["comments"]
    # push the first entry into the future
    entries[0]["date"] = entries[1]["date"] + timedelta(minutes=5)
    body = client.get("/comments/p1").json()
    assert [c["comment"] for c in body["comments"]] == ["older", "newer"]


def test_threads_are_per_product():
    reset()
    comment("p1", "a", "one")
    comment("p2", "b", "two")
    assert [c["comment"] for c in client.get("/comments/p1").json()["comments"]] == ["one"]
    assert [c["comment"] for c in client.get("/comments/p2").json()["comments"]] == ["two"]
