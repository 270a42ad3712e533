"""
Pydantic schemas for the income summary report
"""

from pydantic import BaseModel
from typing import Optional


class DoctorTotals(BaseModel):
    doctor_id: Optional[int]
    doctor: str
    total_orders: int
    completed: int
    pending: int
    total_cost: float
    total_paid: float
    pending_balance: float


class JobTypeTotals(BaseModel):
    """Orders grouped by the category of their first job item"""
    category: str
    total_orders: int
    total_cost: float
    total_paid: float


class StatusTotals(BaseModel):
    status: str
    count: int
    total_cost: float
    total_paid: float
    total_balance: float


class ReportSummary(BaseModel):
    total_orders: int
    total_income: float
    total_pending_balance: float
    orders_by_doctor: list[DoctorTotals]
    orders_by_job_type: list[JobTypeTotals]
    orders_by_status: list[StatusTotals]
