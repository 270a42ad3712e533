"""
Income and pending balance summary
"""

from sqlalchemy.orm import Session, selectinload

from dentallab.constants import STATUS_COMPLETED
from dentallab.models.order import Order
from dentallab.schemas.report import ReportSummary, DoctorTotals, JobTypeTotals, StatusTotals

UNASSIGNED_DOCTOR = "Sin Asignar"
UNCATEGORIZED = "Sin Categoría"


class ReportService:
    """Aggregates ledger totals overall, per doctor, per job category and per status"""

    def __init__(self, db: Session):
        self.db = db

    def _orders(self) -> list[Order]:
        return (
            self.db.query(Order)
            .options(
                selectinload(Order.payments),
                selectinload(Order.doctor),
                selectinload(Order.job_items),
            )
            .all()
        )

    async def summary(self) -> ReportSummary:
        orders = self._orders()

        by_doctor: dict = {}
        by_category: dict = {}
        total_cost = 0.0
        total_paid = 0.0
        for order in orders:
            paid = order.paid_amount
            total_cost += order.cost
            total_paid += paid

            name = order.doctor.full_name if order.doctor else UNASSIGNED_DOCTOR
            entry = by_doctor.setdefault(order.doctor_id, {
                "doctor_id": order.doctor_id,
                "doctor": name,
                "total_orders": 0,
                "completed": 0,
                "pending": 0,
                "total_cost": 0.0,
                "total_paid": 0.0,
            })
            entry["total_orders"] += 1
            if order.status == STATUS_COMPLETED:
                entry["completed"] += 1
            else:
                entry["pending"] += 1
            entry["total_cost"] += order.cost
            entry["total_paid"] += paid

            category = order.category or UNCATEGORIZED
            bucket = by_category.setdefault(category, {
                "category": category,
                "total_orders": 0,
                "total_cost": 0.0,
                "total_paid": 0.0,
            })
            bucket["total_orders"] += 1
            bucket["total_cost"] += order.cost
            bucket["total_paid"] += paid

        orders_by_doctor = [
            DoctorTotals(
                **entry,
                pending_balance=round(entry["total_cost"] - entry["total_paid"], 2),
            )
            for entry in sorted(by_doctor.values(), key=lambda e: e["total_orders"], reverse=True)
        ]
        orders_by_job_type = [
            JobTypeTotals(**bucket)
            for bucket in sorted(by_category.values(), key=lambda b: b["category"])
        ]

        return ReportSummary(
            total_orders=len(orders),
            total_income=round(total_paid, 2),
            total_pending_balance=round(total_cost - total_paid, 2),
            orders_by_doctor=orders_by_doctor,
            orders_by_job_type=orders_by_job_type,
            orders_by_status=self._status_totals(orders),
        )

    async def order_status(self) -> list[StatusTotals]:
        return self._status_totals(self._orders())

    @staticmethod
    def _status_totals(orders: list[Order]) -> list[StatusTotals]:
        groups: dict = {}
        for order in orders:
            group = groups.setdefault(order.status, {"status": order.status, "count": 0, "total_cost": 0.0, "total_paid": 0.0})
            group["count"] += 1
            group["total_cost"] += order.cost
            group["total_paid"] += order.paid_amount

        return [
            StatusTotals(**group, total_balance=round(group["total_cost"] - group["total_paid"], 2))
            for group in sorted(groups.values(), key=lambda g: g["status"])
        ]
