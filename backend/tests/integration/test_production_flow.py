"""
End-to-end production flow through the API

Approved sales order item → work order → every stage → quality gate →
delivered.
"""
import pytest

from stitchops.models.work_order import ProductionStageHistory
from tests.factories import create_test_sales_order


BASE = "/api/v1"


@pytest.mark.integration
def test_item_travels_from_order_processing_to_delivered(client, db_session, actor_headers):
    so = create_test_sales_order(db_session, items=[{"product_name": "Club Hoodie", "quantity": 40}])
    item_id = so.items[0].id
    db_session.commit()

    created = client.post(f"{BASE}/work-orders/", json={"sales_order_item_id": item_id}, headers=actor_headers)
    assert created.status_code == 201
    wo_id = created.json()["id"]

    for stage, expected_next in [
        ("order_processing", "material_procurement"),
        ("material_procurement", "cutting"),
        ("cutting", "sewing_assembly"),
        ("sewing_assembly", "quality_control"),
    ]:
        response = client.post(
            f"{BASE}/work-orders/{wo_id}/stages/finish", json={"stage": stage}, headers=actor_headers
        )
        assert response.status_code == 200, response.json()
        assert response.json()["next_stage"] == expected_next

    # Quality gate releases the batch to finishing
    inspection = client.post(
        f"{BASE}/quality/inspections",
        json={
            "work_order_id": wo_id,
            "counts": {"total": 40, "passed": 38, "repaired": 2, "rejected": 0},
            "issues": [{"type": "skipped_stitch", "severity": "minor", "category": "repair", "quantity": 2}],
            "repair_notes": "Restitched side seams on two hoodies",
        },
        headers={"X-User-Id": "inspector-3"},
    )
    assert inspection.status_code == 201
    assert inspection.json()["inspection"]["status"] == "repair"
    assert inspection.json()["current_stage"] == "finishing"

    for stage, expected_next in [("finishing", "dispatch"), ("dispatch", "delivered")]:
        response = client.post(
            f"{BASE}/work-orders/{wo_id}/stages/finish", json={"stage": stage}, headers=actor_headers
        )
        assert response.status_code == 200, response.json()
        assert response.json()["next_stage"] == expected_next

    detail = client.get(f"{BASE}/work-orders/{wo_id}").json()
    assert detail["current_stage"] == "delivered"
    assert detail["completed_at"] is not None

    entries = (
        db_session.query(ProductionStageHistory)
        .filter_by(work_order_id=wo_id)
        .order_by(ProductionStageHistory.id)
        .all()
    )
    assert [e.stage for e in entries] == [
        "order_processing",
        "material_procurement",
        "cutting",
        "sewing_assembly",
        "quality_control",
        "finishing",
        "dispatch",
    ]
    assert all(e.completed_at is not None for e in entries)
    assert all(e.duration is not None and e.duration >= 0 for e in entries)
    assert entries[4].notes.startswith("Quality control completed: 38 passed, 2 repaired, 0 rejected")

    timeline = client.get(f"{BASE}/work-orders/{wo_id}/timeline").json()
    assert timeline["open_stage"] is None

    # Nothing left to convert on that order
    available = client.get(f"{BASE}/work-orders/available-items").json()
    assert available["total_items"] == 0


@pytest.mark.integration
def test_rejected_batch_blocks_until_reinspected(client, db_session, actor_headers):
    so = create_test_sales_order(db_session)
    item_id = so.items[0].id
    db_session.commit()

    wo_id = client.post(
        f"{BASE}/work-orders/", json={"sales_order_item_id": item_id}, headers=actor_headers
    ).json()["id"]
    client.put(f"{BASE}/work-orders/{wo_id}/stage", json={"new_stage": "quality_control"}, headers=actor_headers)

    rejected = client.post(
        f"{BASE}/quality/inspections",
        json={
            "work_order_id": wo_id,
            "counts": {"total": 10, "passed": 8, "rejected": 2},
            "issues": [{"type": "stain", "severity": "major", "category": "reject"}],
            "reinspection": {"required": True, "date": "2026-11-02T08:00:00"},
        },
        headers=actor_headers,
    )
    assert rejected.json()["stage_advanced"] is False

    queue = client.get(f"{BASE}/quality/queue").json()
    assert [row["work_order_id"] for row in queue] == [wo_id]

    # Replacement units pass on reinspection
    passed = client.post(
        f"{BASE}/quality/inspections",
        json={"work_order_id": wo_id, "counts": {"total": 10, "passed": 10}},
        headers=actor_headers,
    )
    assert passed.json()["stage_advanced"] is True
    assert client.get(f"{BASE}/quality/queue").json() == []

    metrics = client.get(f"{BASE}/quality/metrics").json()
    assert metrics["total_inspections"] == 2
    assert metrics["reject_rate"] == 50.0
