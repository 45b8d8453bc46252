import pytest


def h(device_id):
    return {"X-Device-Id": device_id}


@pytest.fixture
def todo(client, device):
    return client.get("/api/kb/boot", headers=h(device)).json()["columns"][0]["id"]


def create(client, device, column_id, title):
    return client.post(
        "/api/kb/tasks", json={"columnId": column_id, "title": title}, headers=h(device)
    ).json()["task"]


def reorder(client, device, column_id, ordered_ids):
    return client.patch(
        "/api/kb/tasks/reorder",
        json={"column_id": column_id, "ordered_ids": ordered_ids},
        headers=h(device),
    )


def column_tasks(client, device, column_id):
    board = client.get("/api/kb/board", headers=h(device)).json()
    return {t["id"]: t["position"] for t in board["tasksByColumn"][column_id]}


def test_swap_two_tasks(client, device, todo):
    a = create(client, device, todo, "A")
    b = create(client, device, todo, "B")
    assert (a["position"], b["position"]) == (0, 1)

    response = reorder(client, device, todo, [b["id"], a["id"]])
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert column_tasks(client, device, todo) == {a["id"]: 1, b["id"]: 0}


def test_reorder_with_current_order_changes_nothing(client, device, todo):
    ids = [create(client, device, todo, t)["id"] for t in "ABC"]
    before = column_tasks(client, device, todo)

    assert reorder(client, device, todo, ids).status_code == 200
    assert column_tasks(client, device, todo) == before


def test_partial_list_is_rejected(client, device, todo):
    ids = [create(client, device, todo, t)["id"] for t in "ABC"]
    before = column_tasks(client, device, todo)

    response = reorder(client, device, todo, [ids[2], ids[0]])
    assert response.status_code == 400
    assert column_tasks(client, device, todo) == before


def test_duplicate_ids_are_rejected(client, device, todo):
    a = create(client, device, todo, "A")
    create(client, device, todo, "B")
    response = reorder(client, device, todo, [a["id"], a["id"]])
    assert response.status_code == 400
    assert response.json() == {"error": "ordered_ids contains duplicate ids"}


def test_ids_from_another_column_are_rejected(client, device, todo):
    board = client.get("/api/kb/board", headers=h(device)).json()
    done = board["columns"][2]["id"]
    a = create(client, device, todo, "A")
    other = create(client, device, done, "X")

    response = reorder(client, device, todo, [other["id"], a["id"]])
    assert response.status_code == 400
    assert column_tasks(client, device, done) == {other["id"]: 0}
    assert column_tasks(client, device, todo) == {a["id"]: 0}


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"ordered_ids": ["a"]},
        {"column_id": "c"},
        {"column_id": "c", "ordered_ids": []},
    ],
)
def test_reorder_tasks_requires_column_and_ids(client, device, todo, body):
    response = client.patch("/api/kb/tasks/reorder", json=body, headers=h(device))
    assert response.status_code == 400
    assert response.json() == {"error": "column_id and ordered_ids required"}


def test_reorder_unknown_column_is_404(client, device, todo):
    response = reorder(client, device, "nope", ["a"])
    assert response.status_code == 404
    assert response.json() == {"error": "Column not found or access denied"}


def test_reorder_columns_rejects_incomplete_list(client, device, todo):
    columns = client.get("/api/kb/board", headers=h(device)).json()["columns"]
    response = client.patch(
        "/api/kb/columns/reorder",
        json={"ordered_ids": [columns[1]["id"], columns[0]["id"]]},
        headers=h(device),
    )
    assert response.status_code == 400
    after = client.get("/api/kb/board", headers=h(device)).json()["columns"]
    assert [c["position"] for c in after] == [0, 1, 2]
    assert [c["id"] for c in after] == [c["id"] for c in columns]
