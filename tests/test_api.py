"""
Integration tests for the HTTP API.

Covers the interns, units, rotations, activity and settings routers plus
the error mapping (ValidationError -> 400, NotFoundError -> 404).
"""

import pytest


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def units(client):
    ids = []
    for n in range(1, 5):
        resp = client.post("/api/units/", json={"name": f"Unit {n}", "duration_days": 14, "workload": "High"})
        assert resp.status_code == 201
        ids.append(resp.json()["id"])
    return ids


@pytest.fixture
def intern(client, units):
    resp = client.post("/api/interns/", params={"today": "2026-01-01"}, json={
        "name": "Ada",
        "gender": "Female",
        "start_date": "2026-01-01T22:30:00-05:00",
        "initial_unit_id": units[0],
    })
    assert resp.status_code == 201
    return resp.json()


# =============================================================================
# App
# =============================================================================

def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json()["status"] == "ok"


# =============================================================================
# Interns
# =============================================================================

class TestInterns:
    def test_create_truncates_timestamp(self, intern):
        assert intern["start_date"] == "2026-01-01"
        assert intern["batch"] == "A"
        assert intern["status"] == "Active"

    def test_bad_date_is_rejected(self, client):
        resp = client.post("/api/interns/", json={"name": "X", "gender": "Male", "start_date": "01/02/2026"})
        assert resp.status_code == 422

    def test_validation_error_is_400(self, client):
        resp = client.post("/api/interns/", json={"name": "X", "gender": "Robot", "start_date": "2026-01-02"})
        assert resp.status_code == 400
        assert "gender" in resp.json()["detail"]

    def test_missing_intern_is_404(self, client):
        resp = client.get("/api/interns/999")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Intern not found"}

    def test_schedule_advances_on_read(self, client, units, intern):
        resp = client.get(f"/api/interns/{intern['id']}/schedule", params={"today": "2026-01-15"})
        assert resp.status_code == 200
        body = resp.json()
        assert [r["unit_id"] for r in body["completed"]] == [units[0]]
        assert body["current"]["unit_id"] == units[1]
        assert body["current"]["start_date"] == "2026-01-15"
        assert body["current"]["end_date"] == "2026-01-28"
        assert [u["unit_id"] for u in body["upcoming"]] == units[2:]
        assert body["upcoming"][0]["id"] == f"upcoming-{intern['id']}-{units[2]}"

    def test_extend_and_history(self, client, intern):
        url = f"/api/interns/{intern['id']}/extend"
        resp = client.post(url, params={"today": "2026-01-05"}, json={"days": 3, "reason": "leave"})
        assert resp.status_code == 200
        assert resp.json()["extension_days"] == 3
        assert resp.json()["status"] == "Extended"

        resp = client.post(url, params={"today": "2026-01-05"}, json={"days": -5, "reason": "other", "mode": "delta"})
        assert resp.status_code == 400

        resp = client.post(url, params={"today": "2026-01-05"}, json={"days": 10, "reason": "other", "mode": "delta"})
        assert resp.json()["extension_days"] == 13

        history = client.get(f"/api/interns/{intern['id']}/extensions").json()
        assert sorted(h["extension_days"] for h in history) == [3, 10]

        rotations = client.get("/api/rotations/", params={"intern_id": intern["id"]}).json()
        assert rotations[0]["end_date"] == "2026-01-27"

    def test_malformed_today_is_400(self, client, intern):
        resp = client.get(f"/api/interns/{intern['id']}/schedule", params={"today": "next week"})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Invalid date")
        resp = client.post(f"/api/interns/{intern['id']}/sync-status", params={"today": "2026-13-01"})
        assert resp.status_code == 400

    def test_sync_status(self, client, intern):
        resp = client.post(f"/api/interns/{intern['id']}/sync-status", params={"today": "2027-01-01"})
        assert resp.json() == {"id": intern["id"], "status": "Completed", "changed": True}

    def test_patch_and_delete(self, client, intern):
        resp = client.patch(f"/api/interns/{intern['id']}", json={"phone_number": "555-0101"})
        assert resp.json()["phone_number"] == "555-0101"
        assert client.delete(f"/api/interns/{intern['id']}").json() == {"ok": True}
        assert client.get(f"/api/interns/{intern['id']}").status_code == 404


# =============================================================================
# Units
# =============================================================================

class TestUnits:
    def test_list_with_coverage(self, client, units, intern):
        rows = client.get("/api/units/", params={"today": "2026-01-05"}).json()
        assert [r["id"] for r in rows] == units
        assert rows[0]["current_interns"] == 1
        assert rows[0]["intern_names"] == ["Ada"]
        assert rows[0]["coverage_status"] == "critical"

    def test_reorder(self, client, units):
        resp = client.post("/api/units/reorder", json={"unit_ids": list(reversed(units))})
        assert [u["id"] for u in resp.json()] == list(reversed(units))
        assert client.post("/api/units/reorder", json={"unit_ids": units[:2]}).status_code == 400

    def test_delete_rejected_while_in_use(self, client, units, intern):
        resp = client.delete(f"/api/units/{units[0]}", params={"today": "2026-01-05"})
        assert resp.status_code == 400
        assert client.delete(f"/api/units/{units[3]}").json() == {"ok": True}

    def test_patient_count_and_history(self, client, units):
        resp = client.post(f"/api/units/{units[0]}/patient-count", json={"patient_count": 3})
        assert resp.json()["workload"] == "Low"
        history = client.get(f"/api/units/{units[0]}/workload-history").json()
        assert [h["workload"] for h in history] == ["Low"]

    def test_seed_defaults(self, client):
        first = client.post("/api/units/seed-defaults").json()
        assert first["created"] == 12
        assert client.post("/api/units/seed-defaults").json()["created"] == 0


# =============================================================================
# Rotations
# =============================================================================

class TestRotations:
    def test_manual_create_conflict(self, client, units, intern):
        resp = client.post("/api/rotations/", json={
            "intern_id": intern["id"], "unit_id": units[1], "start_date": "2026-01-10",
        })
        assert resp.status_code == 400
        resp = client.post("/api/rotations/", json={
            "intern_id": intern["id"], "unit_id": units[1], "start_date": "2026-01-15",
        })
        assert resp.status_code == 201
        assert resp.json()["end_date"] == "2026-01-28"

    def test_reassign_frees_previous_unit(self, client, units, intern):
        rotation = client.get("/api/rotations/", params={"intern_id": intern["id"]}).json()[0]
        resp = client.post(f"/api/rotations/{rotation['id']}/reassign", json={"unit_id": units[2]})
        assert resp.json()["unit_id"] == units[2]
        candidates = client.get(
            f"/api/interns/{intern['id']}/reassignment-candidates", params={"today": "2026-01-03"},
        ).json()
        assert [u["id"] for u in candidates] == [units[0], units[1], units[3]]

    def test_current(self, client, units, intern):
        body = client.get("/api/rotations/current", params={"today": "2026-01-05"}).json()
        assert body["date"] == "2026-01-05"
        assert body["rotations"][0]["intern_name"] == "Ada"
        unit = next(u for u in body["units"] if u["unit_id"] == units[0])
        assert (unit["batch_a"], unit["batch_b"], unit["total"]) == (1, 0, 1)

    def test_generate_and_advance(self, client, units, intern):
        summary = client.post("/api/rotations/generate", json={"start_date": "2026-01-01"}).json()
        assert summary["interns"] == 1
        assert summary["rotations"] == 26
        assert client.post("/api/rotations/advance", params={"today": "2026-01-20"}).json()["rotations"] == 0

    def test_missing_rotation_is_404(self, client):
        assert client.delete("/api/rotations/12345").status_code == 404


# =============================================================================
# Activity & settings
# =============================================================================

def test_recent_activity(client, intern):
    rows = client.get("/api/activity/recent", params={"limit": 5}).json()
    assert any(r["activity_type"] == "new_intern" and r["intern_name"] == "Ada" for r in rows)


def test_settings_round_trip(client):
    resp = client.put("/api/settings/", json={"settings": {"coverage": {"min_high": 1}, "allow_overlap": True}})
    assert resp.status_code == 200
    body = client.get("/api/settings/").json()
    assert body["coverage"]["min_high"] == 1
    assert body["allow_overlap"] is True
    assert client.put("/api/settings/", json={"settings": {"bogus": 1}}).status_code == 400
