"""
Tests for the /sample-requests endpoints
"""
import pytest

from tests.factories import create_test_customer, create_test_sample_request


BASE = "/api/v1/sample-requests"


class TestSampleRequestEndpoints:

    @pytest.mark.api
    def test_create_and_fetch(self, client, db_session, actor_headers):
        # Arrange
        customer = create_test_customer(db_session)
        customer_id = customer.id
        db_session.commit()

        # Act
        response = client.post(
            f"{BASE}/",
            json={
                "customer_id": customer_id,
                "sample_name": "Training Bib",
                "material_requirements": [{"material_type": "mesh", "quantity": 2, "unit": "meters"}],
                "process_stages": ["dtf_printing"],
            },
            headers=actor_headers,
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["created_by"] == "operator-1"
        assert data["allowed_transitions"] == ["approved", "canceled", "on_review"]
        assert data["process_stages"][0]["process_stage"] == "dtf_printing"
        assert data["status_history"][0]["new_status"] == "draft"

        fetched = client.get(f"{BASE}/{data['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["sample_id"] == data["sample_id"]

    @pytest.mark.api
    def test_unknown_process_stage_rejected(self, client, db_session, actor_headers):
        customer = create_test_customer(db_session)
        customer_id = customer.id
        db_session.commit()

        response = client.post(
            f"{BASE}/",
            json={"customer_id": customer_id, "sample_name": "Bib", "process_stages": ["laser"]},
            headers=actor_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.api
    def test_status_change(self, client, db_session, actor_headers):
        sample = create_test_sample_request(db_session)
        sample_id = sample.id
        db_session.commit()

        response = client.post(
            f"{BASE}/{sample_id}/status",
            json={"new_status": "on_review", "reason": "Ready for buyer"},
            headers=actor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "on_review"
        assert data["status_history"][0]["change_reason"] == "Ready for buyer"
        assert data["status_history"][0]["previous_status"] == "draft"

    @pytest.mark.api
    def test_invalid_transition_returns_400(self, client, db_session, actor_headers):
        sample = create_test_sample_request(db_session, status="canceled")
        sample_id = sample.id
        db_session.commit()

        response = client.post(
            f"{BASE}/{sample_id}/status", json={"new_status": "draft"}, headers=actor_headers
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_STATUS_TRANSITION"
        assert data["details"]["allowed_states"] == []

    @pytest.mark.api
    def test_list_and_dashboard(self, client, db_session):
        create_test_sample_request(db_session)
        create_test_sample_request(db_session, status="approved")
        db_session.commit()

        listing = client.get(f"{BASE}/", params={"sample_status": "approved"})
        dashboard = client.get(f"{BASE}/dashboard")

        assert listing.status_code == 200
        assert listing.json()["pagination"]["total"] == 1
        assert dashboard.status_code == 200
        assert dashboard.json()["total"] == 2
        assert dashboard.json()["status_counts"]["approved"] == 1

    @pytest.mark.api
    def test_unknown_sample(self, client):
        response = client.get(f"{BASE}/77")

        assert response.status_code == 404


class TestSampleRequestEditing:

    @pytest.mark.api
    def test_update_draft(self, client, db_session, actor_headers):
        # Arrange
        sample = create_test_sample_request(db_session, color="White")
        sample_id = sample.id
        db_session.commit()

        # Act
        response = client.put(
            f"{BASE}/{sample_id}",
            json={"color": "Navy", "process_stages": ["embroidery", "sublimation"]},
            headers=actor_headers,
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["color"] == "Navy"
        assert data["sample_name"] == "Team Jersey Prototype"
        assert [(s["process_stage"], s["sequence"]) for s in data["process_stages"]] == [
            ("embroidery", 1), ("sublimation", 2)
        ]

    @pytest.mark.api
    def test_update_non_draft_returns_400(self, client, db_session, actor_headers):
        sample = create_test_sample_request(db_session, status="approved")
        sample_id = sample.id
        db_session.commit()

        response = client.put(f"{BASE}/{sample_id}", json={"notes": "late change"}, headers=actor_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_STATE"
        assert data["message"] == "Only draft sample requests can be edited"

    @pytest.mark.api
    def test_delete_draft(self, client, db_session, actor_headers):
        # Arrange
        sample = create_test_sample_request(db_session)
        sample_id, code = sample.id, sample.sample_id
        db_session.commit()

        # Act
        response = client.delete(f"{BASE}/{sample_id}", headers=actor_headers)

        # Assert
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"]["sample_id"] == code
        assert client.get(f"{BASE}/{sample_id}").status_code == 404

    @pytest.mark.api
    def test_delete_non_draft_returns_400(self, client, db_session, actor_headers):
        sample = create_test_sample_request(db_session, status="on_review")
        sample_id = sample.id
        db_session.commit()

        response = client.delete(f"{BASE}/{sample_id}", headers=actor_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATE"
        assert client.get(f"{BASE}/{sample_id}").status_code == 200

    @pytest.mark.api
    def test_edits_require_actor(self, client, db_session):
        sample = create_test_sample_request(db_session)
        sample_id = sample.id
        db_session.commit()

        assert client.put(f"{BASE}/{sample_id}", json={"color": "Red"}).status_code == 401
        assert client.delete(f"{BASE}/{sample_id}").status_code == 401
