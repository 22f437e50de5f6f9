def create_user(client, email="ada@example.com", name="Ada"):
    return client.post("/api/users", json={"email": email, "name": name})


def test_create_user(client):
    response = create_user(client, email="Ada@Example.com")

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "ada@example.com"
    assert body["preferences"] == {"defaultTeam": None, "defaultPriority": "medium", "defaultLabels": []}


def test_create_user_returns_existing(client):
    first = create_user(client).json()
    second = create_user(client)

    assert second.status_code == 200
    assert second.json()["id"] == first["id"]


def test_get_user(client):
    user = create_user(client).json()

    assert client.get(f"/api/users/{user['id']}").json()["email"] == "ada@example.com"
    assert client.get("/api/users", params={"email": "ADA@example.com"}).json()["id"] == user["id"]


def test_unknown_user(client):
    assert client.get("/api/users/missing").status_code == 404
    assert client.get("/api/users", params={"email": "nobody@example.com"}).status_code == 404


def test_update_preferences(client):
    user = create_user(client).json()

    response = client.put(
        f"/api/users/{user['id']}/preferences",
        json={"defaultTeam": "team-1", "defaultPriority": "high", "defaultLabels": ["bug", "bug", "ui"]},
    )

    assert response.status_code == 200
    assert response.json()["preferences"] == {
        "defaultTeam": "team-1",
        "defaultPriority": "high",
        "defaultLabels": ["bug", "ui"],
    }


def test_invalid_priority_is_rejected(client):
    user = create_user(client).json()
    response = client.put(f"/api/users/{user['id']}/preferences", json={"defaultPriority": "someday"})
    assert response.status_code == 422


def test_link_linear_account(client):
    user = create_user(client).json()

    response = client.put(f"/api/users/{user['id']}/linear", json={"linearUserId": "user-1"})

    assert response.status_code == 200
    assert response.json()["linearUserId"] == "user-1"


def test_labels_with_commas_survive_a_round_trip(client):
    user = create_user(client).json()

    client.put(
        f"/api/users/{user['id']}/preferences",
        json={"defaultLabels": ["team:web,mobile", "backend"]},
    )

    stored = client.get(f"/api/users/{user['id']}").json()
    assert stored["preferences"]["defaultLabels"] == ["team:web,mobile", "backend"]
