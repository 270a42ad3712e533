"""
Tests for order lifecycle: creation, numbering, updates and deletion
"""

from datetime import datetime

import pytest

from dentallab.models.notification import Notification
from dentallab.models.order import Order


class TestOrderCreation:
    """Test cases for order creation"""

    def test_create_order_success(self, create_order, doctor):
        data = create_order()

        year = datetime.utcnow().strftime("%y")
        assert data["order_number"] == f"ACR-{year}-0001"
        assert data["doctor_id"] == doctor.id
        assert data["status"] == "Pendiente"
        assert data["priority"] == "Normal"
        assert data["cost"] == pytest.approx(70.0)
        assert data["paid_amount"] == 0
        assert data["balance"] == pytest.approx(70.0)
        assert data["completion_date"] is None
        assert data["doctor"] is None
        assert data["job_items"][0]["category"] == "ACRÍLICO"
        assert data["job_items"][0]["subtotal"] == pytest.approx(70.0)

    def test_order_numbers_are_sequential_per_prefix(self, create_order):
        first = create_order()
        second = create_order()
        other = create_order(job_items=[
            {"job_type": "PRÓTESIS FIJA - Corona de Zirconio", "unit_cost": 130, "units": 1},
        ])

        year = datetime.utcnow().strftime("%y")
        assert first["order_number"] == f"ACR-{year}-0001"
        assert second["order_number"] == f"ACR-{year}-0002"
        assert other["order_number"] == f"PTF-{year}-0001"

    def test_unknown_category_uses_default_prefix(self, create_order):
        data = create_order(job_items=[{"job_type": "Reparación especial", "unit_cost": 15}])
        assert data["order_number"].startswith("ORD-")

    def test_order_number_cannot_be_chosen_by_client(self, create_order):
        data = create_order(order_number="MINE-001")
        assert data["order_number"] != "MINE-001"

    def test_legacy_single_job_type(self, create_order):
        data = create_order(job_items=None, job_type="FLEXIBLE - De 1 a 6 Unidades", cost=95)

        assert data["order_number"].startswith("FLX-")
        assert len(data["job_items"]) == 1
        assert data["job_items"][0]["job_type"] == "FLEXIBLE - De 1 a 6 Unidades"
        assert data["cost"] == pytest.approx(95.0)

    def test_legacy_job_type_priced_from_catalogue(self, create_order):
        data = create_order(job_items=None, job_type="ACRÍLICO - Rebase Acrílico")
        assert data["cost"] == pytest.approx(35.0)

    def test_create_order_unknown_doctor(self, client, admin_headers):
        payload = {
            "doctor_id": 999,
            "patient_name": "Luis Vera",
            "job_items": [{"job_type": "ACRÍLICO - Rebase Acrílico", "unit_cost": 35}],
        }
        response = client.post("/api/v1/orders/", json=payload, headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["body", "doctor_id"]

    def test_create_order_requires_job_items(self, client, admin_headers, doctor):
        payload = {"doctor_id": doctor.id, "patient_name": "Luis Vera", "job_items": []}
        response = client.post("/api/v1/orders/", json=payload, headers=admin_headers)
        assert response.status_code == 422

    def test_create_order_rejects_non_positive_cost(self, client, admin_headers, doctor):
        payload = {
            "doctor_id": doctor.id,
            "patient_name": "Luis Vera",
            "job_items": [{"job_type": "ACRÍLICO - Rebase Acrílico", "unit_cost": 0}],
        }
        response = client.post("/api/v1/orders/", json=payload, headers=admin_headers)
        assert response.status_code == 422

    def test_create_order_requires_authentication(self, client, doctor):
        response = client.post("/api/v1/orders/", json={"doctor_id": doctor.id})
        assert response.status_code in (401, 403)


class TestOrderRetrieval:
    """Test cases for reading orders"""

    def test_get_order(self, client, admin_headers, create_order):
        created = create_order()
        response = client.get(f"/api/v1/orders/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["order_number"] == created["order_number"]

    def test_get_order_populates_doctor_on_request(self, client, admin_headers, create_order):
        created = create_order()
        response = client.get(
            f"/api/v1/orders/{created['id']}",
            params={"populate_doctor": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["doctor"]["full_name"] == "Dra. Ana Paredes"

    def test_get_missing_order(self, client, admin_headers):
        response = client.get("/api/v1/orders/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Order not found"

    def test_list_orders_with_status_filter(self, client, admin_headers, create_order):
        first = create_order()
        create_order()
        client.put(
            f"/api/v1/orders/{first['id']}",
            json={"status": "Procesando"},
            headers=admin_headers,
        )

        response = client.get("/api/v1/orders/", params={"status": "Procesando"}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["orders"][0]["id"] == first["id"]


class TestOrderUpdate:
    """Test cases for updates and the completion side effect"""

    def test_update_fields(self, client, admin_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"patient_name": "María Vera", "priority": "Urgente"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["patient_name"] == "María Vera"
        assert data["priority"] == "Urgente"
        assert data["order_number"] == created["order_number"]

    def test_invalid_status_rejected(self, client, admin_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Entregado"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_replacing_job_items_recomputes_cost(self, client, admin_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"job_items": [
                {"job_type": "ACRÍLICO - Gancho Colado", "unit_cost": 20, "units": 3},
                {"job_type": "ACRÍLICO - Rejilla Fundida", "unit_cost": 70, "units": 1},
            ]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cost"] == pytest.approx(130.0)
        assert len(data["job_items"]) == 2

    def test_legacy_job_type_update_priced_from_catalogue(self, client, admin_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"job_type": "FLEXIBLE - De 1 a 6 Unidades"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cost"] == pytest.approx(95.0)
        assert len(data["job_items"]) == 1
        assert data["job_items"][0]["job_type"] == "FLEXIBLE - De 1 a 6 Unidades"
        assert data["job_items"][0]["unit_cost"] == pytest.approx(95.0)
        assert data["order_number"] == created["order_number"]

    def test_completion_with_balance_notifies_once(self, client, admin_headers, create_order, db_session):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Completado"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["completion_date"] is not None

        # Re-sending the same status is not a transition
        client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Completado", "priority": "Alta"},
            headers=admin_headers,
        )

        notifications = db_session.query(Notification).filter(Notification.order_id == created["id"]).all()
        assert len(notifications) == 1
        assert "saldo pendiente" in notifications[0].message
        assert "70.00" in notifications[0].message

    def test_completion_when_paid_does_not_notify_balance(self, client, admin_headers, create_order, db_session):
        created = create_order()
        client.post(
            f"/api/v1/orders/{created['id']}/payments",
            json={"amount": 70},
            headers=admin_headers,
        )
        client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Completado"},
            headers=admin_headers,
        )

        messages = [n.message for n in db_session.query(Notification).all()]
        assert not any("saldo pendiente" in message for message in messages)

    def test_explicit_completion_date_is_kept(self, client, admin_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Completado", "completion_date": "2025-03-10T12:00:00"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["completion_date"].startswith("2025-03-10T12:00:00")

    def test_leaving_completed_keeps_completion_date(self, client, admin_headers, create_order):
        created = create_order()
        completed = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Completado"},
            headers=admin_headers,
        ).json()

        reopened = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Procesando"},
            headers=admin_headers,
        ).json()

        assert reopened["status"] == "Procesando"
        assert reopened["completion_date"] == completed["completion_date"]

    def test_update_missing_order(self, client, admin_headers):
        response = client.put("/api/v1/orders/999", json={"priority": "Alta"}, headers=admin_headers)
        assert response.status_code == 404


class TestOrderDeletion:
    """Test cases for deletion and role gating"""

    def test_delete_order(self, client, admin_headers, create_order, db_session):
        created = create_order()
        client.post(
            f"/api/v1/orders/{created['id']}/payments",
            json={"amount": 10},
            headers=admin_headers,
        )

        response = client.delete(f"/api/v1/orders/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Order deleted successfully"
        assert db_session.get(Order, created["id"]) is None

    def test_client_role_may_delete(self, client, client_headers, create_order):
        created = create_order()
        response = client.delete(f"/api/v1/orders/{created['id']}", headers=client_headers)
        assert response.status_code == 200

    def test_operator_cannot_delete(self, client, operator_headers, create_order, db_session):
        created = create_order()
        response = client.delete(f"/api/v1/orders/{created['id']}", headers=operator_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Operators are not allowed to delete records"
        assert db_session.get(Order, created["id"]) is not None
        assert client.get(f"/api/v1/orders/{created['id']}", headers=operator_headers).status_code == 200

    def test_operator_can_edit(self, client, operator_headers, create_order):
        created = create_order()
        response = client.put(
            f"/api/v1/orders/{created['id']}",
            json={"status": "Procesando"},
            headers=operator_headers,
        )
        assert response.status_code == 200

    def test_delete_missing_order(self, client, admin_headers):
        response = client.delete("/api/v1/orders/999", headers=admin_headers)
        assert response.status_code == 404
