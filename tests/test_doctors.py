"""
Tests for the doctor directory and cascading doctor deletion
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dentallab.models.doctor import Doctor
from dentallab.models.order import Order, Payment


class TestDoctorDirectory:
    """Test cases for doctor CRUD"""

    def test_create_doctor(self, client, admin_headers):
        response = client.post(
            "/api/v1/doctors/",
            json={"title": "Dr.", "first_name": "Pablo", "last_name": "Mena", "phone": "(04) 123-4567"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["full_name"] == "Dr. Pablo Mena"
        assert data["email"] is None

    def test_create_doctor_invalid_phone(self, client, admin_headers):
        response = client.post(
            "/api/v1/doctors/",
            json={"title": "Dr.", "first_name": "Pablo", "phone": "123"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_list_and_update_doctor(self, client, admin_headers, doctor):
        response = client.put(
            f"/api/v1/doctors/{doctor.id}",
            json={"address": "Av. 9 de Octubre 100"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["address"] == "Av. 9 de Octubre 100"

        listing = client.get("/api/v1/doctors/", headers=admin_headers).json()
        assert [d["id"] for d in listing] == [doctor.id]

    def test_get_missing_doctor(self, client, admin_headers):
        response = client.get("/api/v1/doctors/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Doctor not found"


class TestDoctorDeletion:
    """Test cases for deleting a doctor together with their orders"""

    def test_delete_doctor_removes_orders(self, client, admin_headers, create_order, doctor, db_session):
        doctor_id = doctor.id
        first = create_order()
        create_order()
        client.post(f"/api/v1/orders/{first['id']}/payments", json={"amount": 10}, headers=admin_headers)

        response = client.delete(f"/api/v1/doctors/{doctor_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["deleted_orders"] == 2

        db_session.expire_all()
        assert db_session.get(Doctor, doctor_id) is None
        assert db_session.query(Order).count() == 0
        assert db_session.query(Payment).count() == 0

    def test_delete_doctor_without_orders(self, client, admin_headers, doctor):
        response = client.delete(f"/api/v1/doctors/{doctor.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["deleted_orders"] == 0

    def test_failed_delete_rolls_back_everything(self, client, admin_headers, create_order, doctor, db_session, monkeypatch):
        create_order()
        create_order()
        original_delete = Session.delete

        def failing_delete(self, instance):
            if isinstance(instance, Doctor):
                raise SQLAlchemyError("simulated failure")
            return original_delete(self, instance)

        monkeypatch.setattr(Session, "delete", failing_delete)

        response = client.delete(f"/api/v1/doctors/{doctor.id}", headers=admin_headers)

        assert response.status_code == 500
        db_session.expire_all()
        assert db_session.get(Doctor, doctor.id) is not None
        assert db_session.query(Order).filter(Order.doctor_id == doctor.id).count() == 2

    def test_operator_cannot_delete_doctor(self, client, operator_headers, doctor, db_session):
        doctor_id = doctor.id
        response = client.delete(f"/api/v1/doctors/{doctor_id}", headers=operator_headers)

        assert response.status_code == 403
        db_session.expire_all()
        assert db_session.get(Doctor, doctor_id) is not None

    def test_delete_missing_doctor(self, client, admin_headers):
        response = client.delete("/api/v1/doctors/999", headers=admin_headers)
        assert response.status_code == 404
