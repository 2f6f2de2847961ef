"""
Integration tests for the sensor CRUD and aggregate endpoints.
"""
from sensorfleet.services import reading_store


# ============================================================================
# HEALTH
# ============================================================================

def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ============================================================================
# SENSORS
# ============================================================================

def _create(client, code, face="north", **extra):
    return client.post("/sensors/", json={"sensor_code": code, "face": face, **extra})


def test_create_and_get_sensor(client):
    response = _create(client, 1, "east", installed_at=1_700_000_000)
    assert response.status_code == 201
    sensor_id = response.json()["id"]

    response = client.get(f"/sensors/{sensor_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["sensor_code"] == 1
    assert data["face"] == "east"
    assert data["installed_at"] == 1_700_000_000
    assert data["status"] == "active"


def test_list_sensors(client):
    _create(client, 1)
    _create(client, 2, "south")

    response = client.get("/sensors/")
    assert response.status_code == 200
    assert [s["sensor_code"] for s in response.json()] == [1, 2]


def test_get_missing_sensor(client):
    response = client.get("/sensors/9999")
    assert response.status_code == 404


def test_duplicate_code_conflicts(client):
    assert _create(client, 5).status_code == 201
    assert _create(client, 5, "west").status_code == 409


def test_invalid_face_rejected(client):
    response = _create(client, 1, "up")
    assert response.status_code == 422


def test_update_sensor(client):
    sensor_id = _create(client, 3).json()["id"]

    response = client.put(f"/sensors/{sensor_id}", json={"status": "maintenance", "face": "north"})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "maintenance"
    assert data["face"] == "north"
    assert data["sensor_code"] == 3


def test_update_cannot_move_sensor_to_another_face(client):
    sensor_id = _create(client, 3, "north").json()["id"]

    response = client.put(f"/sensors/{sensor_id}", json={"face": "west"})
    assert response.status_code == 409

    assert client.get(f"/sensors/{sensor_id}").json()["face"] == "north"


def test_update_can_clear_status(client):
    sensor_id = _create(client, 6).json()["id"]

    response = client.put(f"/sensors/{sensor_id}", json={"status": None})
    assert response.status_code == 200
    assert response.json()["status"] is None


def test_update_rejects_null_for_required_columns(client):
    sensor_id = _create(client, 7).json()["id"]

    assert client.put(f"/sensors/{sensor_id}", json={"sensor_code": None}).status_code == 422
    assert client.put(f"/sensors/{sensor_id}", json={"face": None}).status_code == 422


def test_update_missing_sensor(client):
    response = client.put("/sensors/9999", json={"status": "retired"})
    assert response.status_code == 404


def test_delete_sensor_cascades_readings(client, db):
    sensor_id = _create(client, 4).json()["id"]
    reading_store.bulk_insert_readings(
        db,
        [{"sensor_id": 4, "timestamp": 1_700_000_000 + i, "temperature_value": 21.5} for i in range(3)],
    )
    assert len(client.get("/sensors/4/readings").json()) == 3

    response = client.delete(f"/sensors/{sensor_id}")
    assert response.status_code == 200

    assert client.get(f"/sensors/{sensor_id}").status_code == 404
    assert client.get("/sensors/4/readings").json() == []
    assert reading_store.readings_for_sensor(db, 4) == []


def test_delete_missing_sensor(client):
    assert client.delete("/sensors/9999").status_code == 404


# ============================================================================
# READINGS
# ============================================================================

def test_readings_newest_first_and_latest(client, db):
    _create(client, 8)
    reading_store.create_reading(db, 8, 100, 20.0)
    reading_store.create_reading(db, 8, 300, 22.0)
    reading_store.create_reading(db, 8, 200, 21.0)

    response = client.get("/sensors/8/readings", params={"limit": 2})
    assert response.status_code == 200
    assert [r["timestamp"] for r in response.json()] == [300, 200]

    response = client.get("/sensors/8/readings/latest")
    assert response.status_code == 200
    assert response.json()["temperature_value"] == 22.0


def test_latest_reading_missing(client):
    _create(client, 9)
    assert client.get("/sensors/9/readings/latest").status_code == 404


# ============================================================================
# AGGREGATES
# ============================================================================

def _seed_readings(client, db):
    _create(client, 1, "north")
    _create(client, 2, "north")
    _create(client, 3, "north")
    base = 1_704_067_200
    reading_store.bulk_insert_readings(
        db,
        [
            {"sensor_id": 1, "timestamp": base, "temperature_value": 20.0},
            {"sensor_id": 2, "timestamp": base, "temperature_value": 20.0},
            {"sensor_id": 3, "timestamp": base, "temperature_value": 35.0},
            {"sensor_id": 1, "timestamp": base + 3600, "temperature_value": 20.0},
        ],
    )


def test_facewise_average_endpoint(client, db):
    _seed_readings(client, db)

    response = client.get("/aggregates/", params={"interval": "hour"})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [row["avg_temperature"] for row in data["data"]] == [25.0, 20.0]


def test_overall_average_endpoint(client, db):
    _seed_readings(client, db)

    response = client.get("/aggregates/overall", params={"interval": "hour"})
    assert response.status_code == 200
    assert response.json()["averages"] == {"north": 22.5}


def test_invalid_interval_is_bad_request(client):
    response = client.get("/aggregates/", params={"interval": "fortnight"})
    assert response.status_code == 400

    response = client.get("/aggregates/overall", params={"interval": "year"})
    assert response.status_code == 400


def test_malfunctioning_endpoint(client, db):
    _seed_readings(client, db)

    response = client.get("/aggregates/malfunctioning", params={"threshold": 0.2})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["sensors"][0]["sensor_code"] == 3

    # read-only: the sensor is still registered
    assert len(client.get("/sensors/").json()) == 3


def test_malfunctioning_rejects_negative_threshold(client):
    response = client.get("/aggregates/malfunctioning", params={"threshold": -1})
    assert response.status_code == 400
