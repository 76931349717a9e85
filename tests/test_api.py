import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from farm.infrastructure.database.database import get_session
from farm.main import app


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _add(client: TestClient, name: str, color: str) -> dict:
    response = client.post(
        "/api/v1/animals", json={"name": name, "favorite_color": color}
    )
    assert response.status_code == 201
    return response.json()


def test_add_animal(client: TestClient):
    data = _add(client, "Daisy", "RED")

    assert data["id"] > 0
    assert data["name"] == "Daisy"
    assert data["favorite_color"] == "RED"
    assert data["barn_id"] is not None


def test_add_animal_strips_name(client: TestClient):
    data = _add(client, "  Bella  ", "BLUE")

    assert data["name"] == "Bella"


def test_list_animals(client: TestClient):
    _add(client, "Daisy", "RED")
    _add(client, "Bella", "BLUE")

    response = client.get("/api/v1/animals")

    assert response.status_code == 200
    names = [a["name"] for a in response.json()["animals"]]
    assert names == ["Daisy", "Bella"]


def test_list_barns_reports_occupancy(client: TestClient):
    _add(client, "Daisy", "RED")
    _add(client, "Rosie", "RED")
    _add(client, "Bella", "BLUE")

    response = client.get("/api/v1/barns")

    assert response.status_code == 200
    barns = {b["name"]: b for b in response.json()["barns"]}
    assert barns["RED0"]["size"] == 2
    assert barns["RED0"]["color"] == "RED"
    assert barns["RED0"]["capacity"] == 20
    assert barns["BLUE0"]["size"] == 1


def test_batch_add_redistributes_over_new_barn(client: TestClient):
    animals = [{"name": f"cow-{i}", "favorite_color": "GREEN"} for i in range(21)]

    response = client.post("/api/v1/animals/batch", json=animals)

    assert response.status_code == 201
    assert len(response.json()["animals"]) == 21
    sizes = {b["name"]: b["size"] for b in client.get("/api/v1/barns").json()["barns"]}
    assert sizes == {"GREEN0": 11, "GREEN1": 10}


def test_remove_animal(client: TestClient):
    animal = _add(client, "Daisy", "RED")

    response = client.delete(f"/api/v1/animals/{animal['id']}")

    assert response.status_code == 200
    data = response.json()
    assert [a["id"] for a in data["removed"]] == [animal["id"]]
    assert "Daisy" in data["message"]
    assert client.get("/api/v1/animals").json()["animals"] == []
    assert client.get("/api/v1/barns").json()["barns"] == []


def test_remove_unknown_animal_returns_problem_details(client: TestClient):
    response = client.delete("/api/v1/animals/4242")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    assert data["code"] == "resource_not_found"
    assert data["resource_type"] == "animal"
    assert data["resource_id"] == 4242
    assert data["instance"] == "/api/v1/animals/4242"


def test_remove_several_animals(client: TestClient):
    ids = [_add(client, f"pig-{i}", "PINK")["id"] for i in range(5)]

    response = client.post("/api/v1/animals/remove", json={"ids": ids[:3]})

    assert response.status_code == 200
    assert [a["id"] for a in response.json()["removed"]] == ids[:3]
    remaining = [a["id"] for a in client.get("/api/v1/animals").json()["animals"]]
    assert remaining == ids[3:]


def test_remove_several_with_unknown_id_removes_nothing(client: TestClient):
    ids = [_add(client, f"pig-{i}", "PINK")["id"] for i in range(3)]

    response = client.post("/api/v1/animals/remove", json={"ids": [ids[0], 4242]})

    assert response.status_code == 404
    assert len(client.get("/api/v1/animals").json()["animals"]) == 3


def test_delete_all(client: TestClient):
    _add(client, "Daisy", "RED")
    _add(client, "Bella", "BLUE")

    response = client.delete("/api/v1/animals")

    assert response.status_code == 200
    assert response.json()["removed_count"] == 2
    assert client.get("/api/v1/barns").json()["barns"] == []


def test_unknown_color_is_rejected(client: TestClient):
    response = client.post(
        "/api/v1/animals", json={"name": "Daisy", "favorite_color": "PLAID"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "validation_failed"
    assert [e["field"] for e in data["errors"]] == ["favorite_color"]


def test_blank_name_is_rejected(client: TestClient):
    response = client.post(
        "/api/v1/animals", json={"name": "   ", "favorite_color": "RED"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["errors"][0]["field"] == "name"
    assert data["errors"][0]["code"] == "field_required"
    assert client.get("/api/v1/animals").json()["animals"] == []


def test_empty_id_list_is_rejected(client: TestClient):
    response = client.post("/api/v1/animals/remove", json={"ids": []})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "ids"


def test_health(client: TestClient):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
