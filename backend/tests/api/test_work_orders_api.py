"""
Tests for the /work-orders endpoints

Covers creation, bulk creation, stage start/finish and the error envelope.
"""
import pytest

from tests.factories import create_test_sales_order, create_test_work_order


BASE = "/api/v1/work-orders"


class TestCreateWorkOrderEndpoint:
    """Tests for POST /work-orders/"""

    @pytest.mark.api
    def test_create_returns_201(self, client, db_session, actor_headers):
        # Arrange
        so = create_test_sales_order(db_session)
        item_id = so.items[0].id
        db_session.commit()

        # Act
        response = client.post(
            f"{BASE}/",
            json={"sales_order_item_id": item_id, "priority": 3},
            headers=actor_headers,
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["work_order_number"].startswith("WO-")
        assert data["current_stage"] == "order_processing"
        assert data["priority"] == 3
        assert data["created_by"] == "operator-1"
        assert data["completed_at"] is None

    @pytest.mark.api
    def test_missing_actor_header(self, client, db_session):
        so = create_test_sales_order(db_session)
        item_id = so.items[0].id
        db_session.commit()

        response = client.post(f"{BASE}/", json={"sales_order_item_id": item_id})

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "MISSING_ACTOR"

    @pytest.mark.api
    def test_duplicate_returns_409(self, client, db_session, actor_headers):
        so = create_test_sales_order(db_session)
        item_id = so.items[0].id
        db_session.commit()
        client.post(f"{BASE}/", json={"sales_order_item_id": item_id}, headers=actor_headers)

        response = client.post(f"{BASE}/", json={"sales_order_item_id": item_id}, headers=actor_headers)

        assert response.status_code == 409
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "ALREADY_EXISTS"
        assert data["message"] == "Work order already exists for this sales order item"
        assert "timestamp" in data

    @pytest.mark.api
    def test_unapproved_order_returns_422(self, client, db_session, actor_headers):
        so = create_test_sales_order(db_session, status="draft")
        item_id = so.items[0].id
        db_session.commit()

        response = client.post(f"{BASE}/", json={"sales_order_item_id": item_id}, headers=actor_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "NOT_APPROVED"

    @pytest.mark.api
    def test_unknown_item_returns_404(self, client, actor_headers):
        response = client.post(f"{BASE}/", json={"sales_order_item_id": 999}, headers=actor_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.api
    def test_priority_out_of_range_returns_400(self, client, db_session, actor_headers):
        so = create_test_sales_order(db_session)
        item_id = so.items[0].id
        db_session.commit()

        response = client.post(
            f"{BASE}/", json={"sales_order_item_id": item_id, "priority": 42}, headers=actor_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestBulkCreateEndpoint:
    """Tests for POST /work-orders/bulk"""

    @pytest.mark.api
    def test_partial_success(self, client, db_session, actor_headers):
        so = create_test_sales_order(db_session, items=[{}, {}, {}])
        item_ids = [item.id for item in so.items]
        create_test_work_order(db_session, item=so.items[2])
        db_session.commit()

        response = client.post(
            f"{BASE}/bulk",
            json={"sales_order_item_ids": item_ids, "options": {"priority": 2}},
            headers=actor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert {wo["priority"] for wo in data["created"]} == {2}
        assert data["errors"][0]["item_id"] == item_ids[2]
        assert data["errors"][0]["error"] == "ALREADY_EXISTS"

    @pytest.mark.api
    def test_empty_list(self, client, actor_headers):
        response = client.post(f"{BASE}/bulk", json={"sales_order_item_ids": []}, headers=actor_headers)

        assert response.status_code == 400


class TestStageEndpoints:
    """Tests for stage start, finish and the administrative override"""

    @pytest.mark.api
    def test_finish_advances_and_auto_starts(self, client, db_session, actor_headers):
        wo = create_test_work_order(db_session, stage="cutting")
        wo_id = wo.id
        db_session.commit()

        response = client.post(
            f"{BASE}/{wo_id}/stages/finish",
            json={"stage": "cutting", "notes": "All panels cut"},
            headers=actor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["entry"]["stage"] == "cutting"
        assert data["entry"]["notes"] == "All panels cut"
        assert data["entry"]["completed_at"] is not None
        assert data["duration"] >= 0
        assert data["next_stage"] == "sewing_assembly"
        assert data["next_entry"]["stage"] == "sewing_assembly"
        assert data["work_order"]["current_stage"] == "sewing_assembly"

    @pytest.mark.api
    def test_finish_not_running_returns_404(self, client, db_session, actor_headers):
        wo = create_test_work_order(db_session, stage="cutting")
        wo_id = wo.id
        db_session.commit()

        response = client.post(
            f"{BASE}/{wo_id}/stages/finish", json={"stage": "finishing"}, headers=actor_headers
        )

        assert response.status_code == 404
        assert response.json()["error"] == "STAGE_NOT_FOUND"

    @pytest.mark.api
    def test_start_twice_returns_409(self, client, db_session, actor_headers):
        wo = create_test_work_order(db_session, stage="cutting", open_stage=False)
        wo_id = wo.id
        db_session.commit()

        first = client.post(f"{BASE}/{wo_id}/stages/start", json={"stage": "cutting"}, headers=actor_headers)
        second = client.post(f"{BASE}/{wo_id}/stages/start", json={"stage": "cutting"}, headers=actor_headers)

        assert first.status_code == 200
        assert first.json()["entry"]["user_id"] == "operator-1"
        assert second.status_code == 409
        assert second.json()["error"] == "STAGE_ALREADY_STARTED"

    @pytest.mark.api
    def test_unknown_stage_is_validation_error(self, client, db_session, actor_headers):
        wo = create_test_work_order(db_session)
        wo_id = wo.id
        db_session.commit()

        response = client.post(f"{BASE}/{wo_id}/stages/start", json={"stage": "ironing"}, headers=actor_headers)

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "VALIDATION_ERROR"

    @pytest.mark.api
    def test_update_stage_override(self, client, db_session, actor_headers):
        wo = create_test_work_order(db_session, stage="cutting")
        wo_id = wo.id
        db_session.commit()

        response = client.put(f"{BASE}/{wo_id}/stage", json={"new_stage": "dispatch"}, headers=actor_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["work_order"]["current_stage"] == "dispatch"
        assert [e["stage"] for e in data["closed_entries"]] == ["cutting"]
        assert data["entry"]["stage"] == "dispatch"


class TestWorkOrderReads:
    """Tests for the list, detail, timeline and available items endpoints"""

    @pytest.mark.api
    def test_detail_and_timeline(self, client, db_session, actor_headers):
        so = create_test_sales_order(db_session)
        item_id = so.items[0].id
        db_session.commit()
        created = client.post(f"{BASE}/", json={"sales_order_item_id": item_id}, headers=actor_headers).json()

        detail = client.get(f"{BASE}/{created['id']}")
        timeline = client.get(f"{BASE}/{created['id']}/timeline")

        assert detail.status_code == 200
        assert detail.json()["stage_history"][0]["notes"] == "Work order created"
        assert timeline.status_code == 200
        assert timeline.json()["open_stage"] == "order_processing"
        assert timeline.json()["total_minutes"] == 0

    @pytest.mark.api
    def test_detail_not_found(self, client):
        response = client.get(f"{BASE}/404")

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.api
    def test_list_by_stage(self, client, db_session):
        create_test_work_order(db_session, stage="cutting")
        create_test_work_order(db_session, stage="dispatch")
        db_session.commit()

        response = client.get(f"{BASE}/", params={"stage": "dispatch"})

        assert response.status_code == 200
        assert [row["current_stage"] for row in response.json()] == ["dispatch"]

    @pytest.mark.api
    def test_available_items(self, client, db_session):
        so = create_test_sales_order(db_session, items=[{}, {}])
        create_test_work_order(db_session, item=so.items[0])
        remaining_id = so.items[1].id
        db_session.commit()

        response = client.get(f"{BASE}/available-items")

        assert response.status_code == 200
        data = response.json()
        assert data["total_items"] == 1
        assert data["orders"][0]["items"][0]["id"] == remaining_id
        assert data["orders"][0]["is_urgent"] is False
