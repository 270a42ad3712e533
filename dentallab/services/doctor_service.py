"""
Doctor directory service
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
import logging

from dentallab.models.doctor import Doctor
from dentallab.models.order import Order
from dentallab.schemas.doctor import DoctorCreate, DoctorUpdate
from dentallab.utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)


class DoctorService:
    """Service for doctor directory operations"""

    def __init__(self, db: Session):
        self.db = db

    async def list_doctors(self) -> list[Doctor]:
        try:
            return self.db.query(Doctor).order_by(Doctor.first_name, Doctor.last_name).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get doctors: {e}")
            raise DatabaseError(f"Failed to retrieve doctors: {str(e)}", e)

    async def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.get(Doctor, doctor_id)
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    async def create_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        try:
            doctor = Doctor(**doctor_data.dict())
            self.db.add(doctor)
            self.db.commit()
            self.db.refresh(doctor)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create doctor: {e}")
            raise DatabaseError(f"Failed to create doctor: {str(e)}", e)

        logger.info(f"Created doctor {doctor.full_name} (ID {doctor.id})")
        return doctor

    async def update_doctor(self, doctor_id: int, doctor_data: DoctorUpdate) -> Doctor:
        doctor = await self.get_doctor(doctor_id)
        try:
            for field, value in doctor_data.dict(exclude_unset=True).items():
                setattr(doctor, field, value)
            self.db.commit()
            self.db.refresh(doctor)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update doctor {doctor_id}: {e}")
            raise DatabaseError(f"Failed to update doctor: {str(e)}", e)
        return doctor

    async def delete_doctor(self, doctor_id: int) -> int:
        """Delete a doctor together with all of their orders

        Orders (with their payments and notes) and the doctor are removed in
        one transaction; any failure rolls everything back.
        Returns the number of orders deleted.
        """
        doctor = await self.get_doctor(doctor_id)
        try:
            orders = self.db.query(Order).filter(Order.doctor_id == doctor_id).all()
            for order in orders:
                self.db.delete(order)
            self.db.flush()

            self.db.delete(doctor)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting doctor {doctor_id} and their orders: {e}")
            raise DatabaseError(f"Failed to delete doctor and associated orders: {str(e)}", e)

        logger.info(f"Doctor with ID {doctor_id} and {len(orders)} associated orders have been deleted.")
        return len(orders)
