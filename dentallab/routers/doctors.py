"""
Doctor directory endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

from dentallab.config import settings
from dentallab.database import get_db
from dentallab.utils.error_handler import DatabaseError
from dentallab.schemas.doctor import DoctorCreate, DoctorUpdate, DoctorResponse
from dentallab.services.doctor_service import DoctorService
from dentallab.auth.auth_handler import staff_required, delete_permitted

logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter()


@router.get("/", response_model=list[DoctorResponse])
@limiter.limit("60/minute")
async def get_doctors(
    request: Request,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """List all doctors"""
    try:
        return await DoctorService(db).list_doctors()
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get doctors: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve doctors")


@router.post("/", response_model=DoctorResponse, status_code=201)
@limiter.limit("30/minute")
async def create_doctor(
    request: Request,
    doctor: DoctorCreate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Register a doctor"""
    try:
        return await DoctorService(db).create_doctor(doctor)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to create doctor: {e}")
        raise HTTPException(status_code=500, detail="Failed to create doctor")


@router.get("/{doctor_id}", response_model=DoctorResponse)
@limiter.limit("60/minute")
async def get_doctor(
    request: Request,
    doctor_id: int,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Get a doctor by ID"""
    try:
        return await DoctorService(db).get_doctor(doctor_id)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get doctor {doctor_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve doctor")


@router.put("/{doctor_id}", response_model=DoctorResponse)
@limiter.limit("30/minute")
async def update_doctor(
    request: Request,
    doctor_id: int,
    doctor: DoctorUpdate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Update a doctor"""
    try:
        return await DoctorService(db).update_doctor(doctor_id, doctor)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to update doctor {doctor_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update doctor")


@router.delete("/{doctor_id}")
@limiter.limit("10/minute")
async def delete_doctor(
    request: Request,
    doctor_id: int,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Delete a doctor and every order they placed"""
    try:
        deleted_orders = await DoctorService(db).delete_doctor(doctor_id)
        return {"message": "Doctor deleted successfully", "deleted_orders": deleted_orders}
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete doctor {doctor_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete doctor and associated orders")
