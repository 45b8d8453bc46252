import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


def h(device_id):
    return {"X-Device-Id": device_id}


def boot(client, device):
    return client.get("/api/kb/boot", headers=h(device)).json()


def positions(client, device):
    return [(c["title"], c["position"]) for c in client.get("/api/kb/board", headers=h(device)).json()["columns"]]


def test_create_column_appends_at_end(client, device):
    boot(client, device)
    response = client.post("/api/kb/columns", json={"title": "Blocked"}, headers=h(device))
    assert response.status_code == 200
    column = response.json()["column"]
    assert column["title"] == "Blocked"
    assert column["position"] == 3
    assert positions(client, device)[-1] == ("Blocked", 3)


def test_create_column_without_board_is_404(client, device):
    response = client.post("/api/kb/columns", json={"title": "Blocked"}, headers=h(device))
    assert response.status_code == 404
    assert response.json() == {"error": "Board not found for this device"}


def test_create_column_rejects_bad_titles(client, device):
    boot(client, device)
    for body in ({}, {"title": ""}, {"title": "   "}, {"title": 7}, {"title": "x" * 51}):
        response = client.post("/api/kb/columns", json=body, headers=h(device))
        assert response.status_code == 400, body
        assert response.json() == {"error": "Missing or invalid title"}


def test_rename_column(client, device):
    column_id = boot(client, device)["columns"][0]["id"]
    response = client.patch(f"/api/kb/columns/{column_id}", json={"title": " Backlog "}, headers=h(device))
    assert response.status_code == 200
    assert response.json()["column"]["title"] == "Backlog"
    assert response.json()["column"]["position"] == 0


def test_rename_unknown_column_is_404(client, device):
    boot(client, device)
    response = client.patch("/api/kb/columns/missing", json={"title": "X"}, headers=h(device))
    assert response.status_code == 404
    assert response.json() == {"error": "Column not found or access denied"}


def test_delete_column_compacts_positions(client, device):
    columns = boot(client, device)["columns"]
    response = client.delete(f"/api/kb/columns/{columns[1]['id']}", headers=h(device))
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert positions(client, device) == [("To Do", 0), ("Done", 1)]


def test_delete_column_removes_its_tasks(client, device):
    columns = boot(client, device)["columns"]
    todo = columns[0]["id"]
    for title in ("A", "B"):
        client.post("/api/kb/tasks", json={"columnId": todo, "title": title}, headers=h(device))

    client.delete(f"/api/kb/columns/{todo}", headers=h(device))

    board = client.get("/api/kb/board", headers=h(device)).json()
    assert todo not in board["tasksByColumn"]
    assert all(tasks == [] for tasks in board["tasksByColumn"].values())


def test_reorder_columns(client, device):
    columns = boot(client, device)["columns"]
    ids = [c["id"] for c in columns]
    response = client.patch(
        "/api/kb/columns/reorder",
        json={"ordered_ids": [ids[2], ids[0], ids[1]]},
        headers=h(device),
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert positions(client, device) == [("Done", 0), ("To Do", 1), ("In Progress", 2)]


def test_reorder_columns_requires_ids(client, device):
    boot(client, device)
    for body in ({}, {"ordered_ids": []}):
        response = client.patch("/api/kb/columns/reorder", json=body, headers=h(device))
        assert response.status_code == 400
        assert response.json() == {"error": "ordered_ids required"}


def test_reorder_columns_without_board_is_404(client, device):
    response = client.patch("/api/kb/columns/reorder", json={"ordered_ids": ["a"]}, headers=h(device))
    assert response.status_code == 404


def test_database_failure_is_a_generic_500_and_rolls_back(client, device, monkeypatch, caplog):
    boot(client, device)
    before = positions(client, device)

    def fail(self):
        raise OperationalError("INSERT INTO kb_columns", {}, Exception("disk full /secret/path"))

    monkeypatch.setattr(Session, "commit", fail)
    with caplog.at_level(logging.ERROR, logger="flashboard.storage"):
        response = client.post("/api/kb/columns", json={"title": "Blocked"}, headers=h(device))
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.json() == {"error": "Database error"}
    assert "secret" not in response.text
    assert "store error" in caplog.text
    assert positions(client, device) == before
