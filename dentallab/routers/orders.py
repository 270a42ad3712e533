"""
Order ledger endpoints: orders, payments and notes
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Optional
import logging
import math

from dentallab.config import settings
from dentallab.database import get_db
from dentallab.schemas.order import (
    OrderCreate, OrderUpdate, OrderResponse, OrderListResponse,
    PaymentCreate, PaymentUpdate, NoteCreate, NoteUpdate
)
from dentallab.services.order_service import OrderService
from dentallab.auth.auth_handler import staff_required, delete_permitted
from dentallab.utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter()


@router.post("/", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
async def create_order(
    request: Request,
    order: OrderCreate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Create a new order; the order number is allocated by the server"""
    try:
        db_order = await OrderService(db).create_order(order)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to create order: {e}")
        raise HTTPException(status_code=500, detail="Failed to create order")


@router.get("/", response_model=OrderListResponse)
@limiter.limit("60/minute")
async def get_orders(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Items per page"),
    status: Optional[str] = Query(None, description="Filter by status"),
    doctor_id: Optional[int] = Query(None, description="Filter by doctor"),
    populate_doctor: bool = Query(False, description="Embed the doctor record in each order"),
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Get paginated list of orders with optional filtering"""
    try:
        orders, total = await OrderService(db).list_orders(page, page_size, status, doctor_id)
        return OrderListResponse(
            orders=[OrderResponse.from_order(order, populate_doctor) for order in orders],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size)
        )
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get orders: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve orders")


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
async def get_order(
    request: Request,
    order_id: int,
    populate_doctor: bool = Query(False, description="Embed the doctor record"),
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Get a specific order by ID"""
    try:
        order = await OrderService(db).get_order(order_id)
        return OrderResponse.from_order(order, populate_doctor)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve order")


@router.put("/{order_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def update_order(
    request: Request,
    order_id: int,
    order_update: OrderUpdate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Update an existing order"""
    try:
        db_order = await OrderService(db).update_order(order_id, order_update)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to update order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update order")


@router.delete("/{order_id}")
@limiter.limit("30/minute")
async def delete_order(
    request: Request,
    order_id: int,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Delete an order"""
    try:
        await OrderService(db).delete_order(order_id)
        return {"message": "Order deleted successfully"}
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete order")


@router.post("/{order_id}/payments", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
async def add_payment(
    request: Request,
    order_id: int,
    payment: PaymentCreate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Record a payment against an order"""
    try:
        db_order = await OrderService(db).add_payment(order_id, payment)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to add payment to order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to add payment")


@router.put("/{order_id}/payments/{payment_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def update_payment(
    request: Request,
    order_id: int,
    payment_id: int,
    payment: PaymentUpdate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Edit a recorded payment"""
    try:
        db_order = await OrderService(db).update_payment(order_id, payment_id, payment)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to update payment {payment_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update payment")


@router.delete("/{order_id}/payments/{payment_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def delete_payment(
    request: Request,
    order_id: int,
    payment_id: int,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Remove a payment from an order"""
    try:
        db_order = await OrderService(db).delete_payment(order_id, payment_id)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete payment {payment_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete payment")


@router.post("/{order_id}/notes", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
async def add_note(
    request: Request,
    order_id: int,
    note: NoteCreate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Attach a note to an order"""
    try:
        db_order = await OrderService(db).add_note(order_id, note)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to add note to order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to add note")


@router.put("/{order_id}/notes/{note_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def update_note(
    request: Request,
    order_id: int,
    note_id: int,
    note: NoteUpdate,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Edit a note's text"""
    try:
        db_order = await OrderService(db).update_note(order_id, note_id, note)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to update note {note_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update note")


@router.delete("/{order_id}/notes/{note_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def delete_note(
    request: Request,
    order_id: int,
    note_id: int,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Remove a note from an order"""
    try:
        db_order = await OrderService(db).delete_note(order_id, note_id)
        return OrderResponse.from_order(db_order)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete note {note_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete note")
