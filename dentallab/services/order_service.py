"""
Order ledger service
Owns order lifecycle, the payment ledger, notes, and the notifications
derived from them
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fastapi import HTTPException, status
from datetime import datetime
from typing import Optional
import logging

from dentallab.constants import STATUS_PENDING, STATUS_COMPLETED, JOB_TYPE_COSTS
from dentallab.models.doctor import Doctor
from dentallab.models.order import Order, JobItem, Payment, Note
from dentallab.schemas.order import (
    OrderCreate, OrderUpdate, JobItemIn,
    PaymentCreate, PaymentUpdate, NoteCreate, NoteUpdate
)
from dentallab.services.notification_service import (
    NotificationService, completed_with_balance_message, fully_paid_message
)
from dentallab.services.order_numbers import allocate_order_number
from dentallab.utils.error_handler import DatabaseError, NumberingConflictError

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    """Round to cents before comparing balances against zero"""
    return round(value, 2)


class OrderService:
    """Service for order ledger operations"""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    # Orders

    async def get_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found"
            )
        return order

    async def list_orders(
        self,
        page: int = 1,
        page_size: int = 50,
        status_filter: Optional[str] = None,
        doctor_id: Optional[int] = None,
    ) -> tuple[list[Order], int]:
        try:
            query = self.db.query(Order)
            if status_filter:
                query = query.filter(Order.status == status_filter)
            if doctor_id:
                query = query.filter(Order.doctor_id == doctor_id)

            total = query.count()
            offset = (page - 1) * page_size
            orders = (
                query.order_by(Order.creation_date.desc(), Order.id.desc())
                .offset(offset)
                .limit(page_size)
                .all()
            )
            return orders, total
        except SQLAlchemyError as e:
            logger.error(f"Failed to get orders: {e}")
            raise DatabaseError(f"Failed to retrieve orders: {str(e)}", e)

    async def create_order(self, order_data: OrderCreate) -> Order:
        """Create an order with a freshly allocated order number"""
        self._require_doctor(order_data.doctor_id)
        job_items = self._build_job_items(order_data.job_items)

        try:
            order_number = allocate_order_number(self.db, job_items[0].category)
            db_order = Order(
                order_number=order_number,
                doctor_id=order_data.doctor_id,
                patient_name=order_data.patient_name,
                cost=sum(item.subtotal for item in job_items),
                priority=order_data.priority,
                case_description=order_data.case_description,
                status=STATUS_PENDING,
                creation_date=datetime.utcnow(),
                job_items=job_items,
            )
            self.db.add(db_order)
            self.db.commit()
            self.db.refresh(db_order)
        except IntegrityError as e:
            self.db.rollback()
            if "order_number" in str(e.orig):
                logger.critical(f"Duplicate order number while creating order: {e.orig}")
                raise NumberingConflictError("Order number already in use", e)
            logger.error(f"Failed to create order: {e}")
            raise DatabaseError(f"Failed to create order: {str(e)}", e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create order: {e}")
            raise DatabaseError(f"Failed to create order: {str(e)}", e)

        logger.info(f"Created order {db_order.order_number} (ID {db_order.id})")
        return db_order

    async def update_order(self, order_id: int, order_update: OrderUpdate) -> Order:
        """Apply a partial update; entering Completado stamps the completion date"""
        db_order = await self.get_order(order_id)
        update_data = order_update.dict(exclude_unset=True)

        if update_data.get("doctor_id") is not None:
            self._require_doctor(update_data["doctor_id"])
            db_order.doctor_id = update_data["doctor_id"]

        if update_data.get("job_items"):
            db_order.job_items = self._build_job_items(order_update.job_items)
            db_order.cost = sum(item.subtotal for item in db_order.job_items)
        elif update_data.get("job_type") or update_data.get("cost"):
            self._collapse_to_single_item(db_order, update_data.get("job_type"), update_data.get("cost"))

        for field in ("patient_name", "priority"):
            if update_data.get(field) is not None:
                setattr(db_order, field, update_data[field])
        if "case_description" in update_data:
            db_order.case_description = update_data["case_description"]

        previous_status = db_order.status
        new_status = update_data.get("status")
        completed_now = new_status == STATUS_COMPLETED and previous_status != STATUS_COMPLETED
        if new_status:
            db_order.status = new_status
        if completed_now:
            db_order.completion_date = update_data.get("completion_date") or datetime.utcnow()
        elif update_data.get("completion_date") is not None:
            db_order.completion_date = update_data["completion_date"]
        # Leaving Completado keeps the previous completion_date

        try:
            self.db.commit()
            self.db.refresh(db_order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update order {order_id}: {e}")
            raise DatabaseError(f"Failed to update order: {str(e)}", e)

        logger.info(f"Updated order {db_order.order_number} (status {previous_status} -> {db_order.status})")

        if completed_now:
            balance = _money(db_order.balance)
            logger.info(f"Balance for completed order {db_order.order_number}: {balance:.2f}")
            if balance > 0:
                self.notifications.notify(
                    db_order.id, completed_with_balance_message(db_order.order_number, balance)
                )

        return db_order

    async def delete_order(self, order_id: int) -> None:
        db_order = await self.get_order(order_id)
        order_number = db_order.order_number
        try:
            self.db.delete(db_order)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete order {order_id}: {e}")
            raise DatabaseError(f"Failed to delete order: {str(e)}", e)
        logger.info(f"Deleted order {order_number} (ID {order_id})")

    # Payments

    async def add_payment(self, order_id: int, payment_data: PaymentCreate) -> Order:
        """Append a payment; a settled balance triggers a fully-paid notification"""
        db_order = await self.get_order(order_id)
        payment = Payment(
            amount=payment_data.amount,
            date=payment_data.date or datetime.utcnow(),
            description=payment_data.description,
        )
        db_order.payments.append(payment)
        self._commit(db_order, f"Failed to add payment to order {order_id}")

        balance = _money(db_order.balance)
        logger.info(f"Payment of {payment.amount:.2f} added to order {db_order.order_number}; balance {balance:.2f}")
        if balance <= 0:
            self.notifications.notify(db_order.id, fully_paid_message(db_order.order_number))
        return db_order

    async def update_payment(self, order_id: int, payment_id: int, payment_data: PaymentUpdate) -> Order:
        # Notifications are only derived when a payment is added
        db_order = await self.get_order(order_id)
        payment = self._find_child(db_order.payments, payment_id, "Payment not found")
        for field, value in payment_data.dict(exclude_unset=True).items():
            if value is not None or field == "description":
                setattr(payment, field, value)
        self._commit(db_order, f"Failed to update payment {payment_id}")
        return db_order

    async def delete_payment(self, order_id: int, payment_id: int) -> Order:
        db_order = await self.get_order(order_id)
        payment = self._find_child(db_order.payments, payment_id, "Payment not found")
        db_order.payments.remove(payment)
        self._commit(db_order, f"Failed to delete payment {payment_id}")
        return db_order

    # Notes

    async def add_note(self, order_id: int, note_data: NoteCreate) -> Order:
        db_order = await self.get_order(order_id)
        db_order.notes.append(Note(
            text=note_data.text,
            author=note_data.author,
            timestamp=note_data.timestamp or datetime.utcnow(),
        ))
        self._commit(db_order, f"Failed to add note to order {order_id}")
        return db_order

    async def update_note(self, order_id: int, note_id: int, note_data: NoteUpdate) -> Order:
        db_order = await self.get_order(order_id)
        note = self._find_child(db_order.notes, note_id, "Note not found")
        note.text = note_data.text
        note.timestamp = datetime.utcnow()
        self._commit(db_order, f"Failed to update note {note_id}")
        return db_order

    async def delete_note(self, order_id: int, note_id: int) -> Order:
        db_order = await self.get_order(order_id)
        note = self._find_child(db_order.notes, note_id, "Note not found")
        db_order.notes.remove(note)
        self._commit(db_order, f"Failed to delete note {note_id}")
        return db_order

    # Helpers

    def _require_doctor(self, doctor_id: int) -> None:
        if self.db.get(Doctor, doctor_id) is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=[{
                    "loc": ["body", "doctor_id"],
                    "msg": f"Doctor {doctor_id} does not exist",
                    "type": "value_error.reference",
                }]
            )

    @staticmethod
    def _build_job_items(items: list[JobItemIn]) -> list[JobItem]:
        return [
            JobItem(
                position=position,
                job_type=item.job_type.strip(),
                category_name=item.category.strip() if item.category else None,
                unit_cost=item.unit_cost,
                units=item.units,
            )
            for position, item in enumerate(items)
        ]

    @staticmethod
    def _collapse_to_single_item(db_order: Order, job_type: Optional[str], cost: Optional[float]) -> None:
        """Legacy single job_type/cost edit: the order becomes one job item"""
        current = db_order.job_items[0] if db_order.job_items else None
        job_type = job_type or (current.job_type if current else "")
        category = current.category_name if current and job_type == current.job_type else None
        unit_cost = cost or JOB_TYPE_COSTS.get(job_type) or db_order.cost
        db_order.job_items = [
            JobItem(position=0, job_type=job_type, category_name=category, unit_cost=unit_cost, units=1)
        ]
        db_order.cost = unit_cost

    @staticmethod
    def _find_child(children: list, child_id: int, not_found_detail: str):
        for child in children:
            if child.id == child_id:
                return child
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found_detail)

    def _commit(self, db_order: Order, failure_message: str) -> None:
        try:
            self.db.commit()
            self.db.refresh(db_order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure_message}: {e}")
            raise DatabaseError(f"{failure_message}: {str(e)}", e)
