from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import create_app
from housekeeping.controllers.optimization_controller import router


pytestmark = pytest.mark.api


def _jobs_payload() -> list[dict[str, str]]:
    return [
        {"job_id": "101", "kind": "TWTW", "state": "Départ"},
        {"job_id": "102", "kind": "Twin", "state": "Départ"},
        {"job_id": "103", "kind": "Twin", "state": "departure"},
        {"job_id": "201", "kind": "King", "state": "Recouche"},
        {"job_id": "202", "kind": "King", "state": "Recouche", "notes": "DND"},
    ]


def _workers_payload() -> list[dict[str, object]]:
    return [
        {"worker_id": "w1", "contract": "6h"},
        {"worker_id": "w2", "contract": "5h"},
    ]


def test_health() -> None:
    with TestClient(create_app()) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_optimize_normalizes_labels_and_balances() -> None:
    with TestClient(create_app()) as client:
        response = client.post(
            "/optimize",
            json={"jobs": _jobs_payload(), "workers": _workers_payload()},
        )
    assert response.status_code == 200
    body = response.json()
    assert body["assignment"] == {"w1": ["101", "103"], "w2": ["102", "201", "202"]}
    assert body["unassigned_jobs"] == []
    assert body["balanced"] is True
    assert body["iterations_used"] == 0
    assert body["termination"] == "tolerance_met"
    assert body["reference_gap"] is None


def test_optimize_accepts_history_and_weights() -> None:
    with TestClient(create_app()) as client:
        response = client.post(
            "/optimize",
            json={
                "jobs": _jobs_payload()[:1],
                "workers": _workers_payload(),
                "reported_errors": [{"worker_id": "w1", "subject": "305"}],
                "resolved_errors": [],
                "weights": {
                    "proximity": 0.25,
                    "workload": 0.25,
                    "experience": 0.25,
                    "historical": 0.25,
                },
            },
        )
    assert response.status_code == 200
    assert response.json()["assignment"] == {"w1": [], "w2": ["101"]}


def test_optimize_rejects_unknown_label() -> None:
    payload = {"jobs": [{"job_id": "101", "kind": "Penthouse", "state": "Départ"}], "workers": []}
    with TestClient(create_app()) as client:
        response = client.post("/optimize", json=payload)
    assert response.status_code == 400
    assert "Penthouse" in response.json()["detail"]


def test_optimize_rejects_weights_not_summing_to_one() -> None:
    payload = {
        "jobs": _jobs_payload(),
        "workers": _workers_payload(),
        "weights": {"proximity": 0.5, "workload": 0.5, "experience": 0.5, "historical": 0.5},
    }
    with TestClient(create_app()) as client:
        response = client.post("/optimize", json=payload)
    assert response.status_code == 400


def test_optimize_rejects_duplicate_rooms() -> None:
    payload = {"jobs": _jobs_payload() + _jobs_payload()[:1], "workers": _workers_payload()}
    with TestClient(create_app()) as client:
        response = client.post("/optimize", json=payload)
    assert response.status_code == 400


def test_optimize_with_reference_gap() -> None:
    pytest.importorskip("ortools")
    payload = {
        "jobs": _jobs_payload(),
        "workers": _workers_payload(),
        "include_reference_gap": True,
    }
    with TestClient(create_app()) as client:
        response = client.post("/optimize", json=payload)
    assert response.status_code == 200
    gap = response.json()["reference_gap"]
    assert gap["status"] == "OPTIMAL"
    assert gap["relative_gap"] == pytest.approx(0.0)


def test_report_endpoint() -> None:
    payload = {
        "jobs": _jobs_payload(),
        "workers": _workers_payload(),
        "assignment": {"w1": ["101", "201"], "w2": ["102"]},
    }
    with TestClient(create_app()) as client:
        response = client.post("/report", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["total_rooms"] == 5
    assert body["departures"] == 3
    assert body["stayovers"] == 2
    assert body["dnd_refusals"] == 1
    assert body["unassigned"] == ["103", "202"]
    assert body["workers"][0]["stayovers"] == ["201"]


def test_report_rejects_unknown_room() -> None:
    payload = {
        "jobs": _jobs_payload(),
        "workers": _workers_payload(),
        "assignment": {"w1": ["999"]},
    }
    with TestClient(create_app()) as client:
        response = client.post("/report", json=payload)
    assert response.status_code == 400


def test_simulate_endpoint() -> None:
    payload = {
        "departures": 10,
        "stayovers": 6,
        "workers": [
            {"worker_id": "anna", "contract": "6h", "experience": 0.8},
            {"worker_id": "ben", "contract": "5h"},
        ],
    }
    with TestClient(create_app()) as client:
        response = client.post("/simulate", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert len(body["rooms"]) == 16
    assert body["baseline"]["total_rooms"] == 16
    assert body["optimized"]["departures"] == 10
    assert set(body["result"]["assignment"]) == {"anna", "ben"}
    assert "fairness_change" in body["delta"]


def test_simulate_rejects_day_larger_than_hotel() -> None:
    payload = {"departures": 200, "stayovers": 0, "workers": [{"worker_id": "a", "contract": "6h"}]}
    with TestClient(create_app()) as client:
        response = client.post("/simulate", json=payload)
    assert response.status_code == 400


def test_simulate_rejects_negative_counts() -> None:
    payload = {"departures": -1, "stayovers": 0, "workers": [{"worker_id": "a", "contract": "6h"}]}
    with TestClient(create_app()) as client:
        response = client.post("/simulate", json=payload)
    assert response.status_code == 422


def test_uninitialized_services_return_503() -> None:
    app = FastAPI()
    app.include_router(router)
    client = TestClient(app)
    assert client.post("/optimize", json={"jobs": [], "workers": []}).status_code == 503
    assert client.post(
        "/simulate",
        json={"departures": 0, "stayovers": 0, "workers": [{"worker_id": "a", "contract": "6h"}]},
    ).status_code == 503
