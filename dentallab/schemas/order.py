"""
Pydantic schemas for orders, job items, payments and notes
"""

from pydantic import BaseModel, Field, validator, root_validator
from typing import Optional
from datetime import datetime

from dentallab.constants import ORDER_STATUSES, ORDER_PRIORITIES, JOB_TYPE_COSTS
from dentallab.schemas.doctor import DoctorResponse
from dentallab.utils.dates import to_naive_utc


def _legacy_job_items(values: dict) -> dict:
    """Turn the single job_type/cost request shape into a one-item job list"""
    if not isinstance(values, dict) or values.get("job_items") or not values.get("job_type"):
        return values
    job_type = values["job_type"]
    unit_cost = values.get("cost")
    if unit_cost is None:
        unit_cost = JOB_TYPE_COSTS.get(job_type)
    values = dict(values)
    values["job_items"] = [{"job_type": job_type, "unit_cost": unit_cost, "units": 1}]
    return values


def _check_priority(v):
    if v is None:
        return v
    if v not in ORDER_PRIORITIES:
        raise ValueError(f'Priority must be one of: {", ".join(ORDER_PRIORITIES)}')
    return v


class JobItemIn(BaseModel):
    """A job line as submitted by the client"""
    job_type: str = Field(..., min_length=1, max_length=200, description="Full job type, e.g. 'ACRÍLICO - Rebase Acrílico'")
    category: Optional[str] = Field(None, max_length=100, description="Job category; derived from job_type when omitted")
    unit_cost: float = Field(..., gt=0, description="Price per unit")
    units: int = Field(1, ge=1, description="Number of units")


class JobItemResponse(BaseModel):
    id: int
    job_type: str
    category: str
    unit_cost: float
    units: int
    subtotal: float

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    """Schema for creating a new order

    Either ``job_items`` or the legacy ``job_type`` (+ optional ``cost``) may
    be sent; the latter becomes a single job item.
    """
    doctor_id: int = Field(..., description="Doctor placing the order")
    patient_name: str = Field(..., min_length=1, max_length=150, description="Patient name")
    job_items: list[JobItemIn] = Field(..., min_length=1, description="Work requested")
    job_type: Optional[str] = Field(None, description="Single job type (legacy shape)")
    cost: Optional[float] = Field(None, gt=0, description="Cost for the single job type (legacy shape)")
    priority: str = Field("Normal", description="Order priority")
    case_description: Optional[str] = Field(None, description="Case description")

    @root_validator(pre=True)
    def convert_legacy_job_type(cls, values):
        return _legacy_job_items(values)

    @validator('patient_name')
    def validate_patient_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Patient name is required')
        return v

    @validator('priority')
    def validate_priority(cls, v):
        return _check_priority(v)


class OrderUpdate(BaseModel):
    """Schema for updating an existing order; order_number and creation_date are not updatable"""
    doctor_id: Optional[int] = Field(None)
    patient_name: Optional[str] = Field(None, min_length=1, max_length=150)
    job_items: Optional[list[JobItemIn]] = Field(None, min_length=1)
    job_type: Optional[str] = Field(None, min_length=1, max_length=200)
    cost: Optional[float] = Field(None, gt=0)
    priority: Optional[str] = Field(None)
    case_description: Optional[str] = Field(None)
    status: Optional[str] = Field(None)
    completion_date: Optional[datetime] = Field(None, description="Explicit completion date; stamped automatically when omitted")

    @validator('status')
    def validate_status(cls, v):
        if v is None:
            return v
        if v not in ORDER_STATUSES:
            raise ValueError(f'Status must be one of: {", ".join(ORDER_STATUSES)}')
        return v

    @validator('priority')
    def validate_priority(cls, v):
        return _check_priority(v)

    @validator('completion_date')
    def normalize_completion_date(cls, v):
        return to_naive_utc(v)


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0, description="Payment amount, strictly positive")
    date: Optional[datetime] = Field(None, description="Payment date; defaults to now")
    description: Optional[str] = Field(None, max_length=500)

    @validator('date')
    def normalize_date(cls, v):
        return to_naive_utc(v)


class PaymentUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[datetime] = Field(None)
    description: Optional[str] = Field(None, max_length=500)

    @validator('date')
    def normalize_date(cls, v):
        return to_naive_utc(v)


class PaymentResponse(BaseModel):
    id: int
    amount: float
    date: datetime
    description: Optional[str]

    class Config:
        from_attributes = True


class NoteCreate(BaseModel):
    text: str = Field(..., min_length=1, description="Note text")
    author: str = Field(..., min_length=1, max_length=100, description="Note author")
    timestamp: Optional[datetime] = Field(None)

    @validator('timestamp')
    def normalize_timestamp(cls, v):
        return to_naive_utc(v)


class NoteUpdate(BaseModel):
    text: str = Field(..., min_length=1)


class NoteResponse(BaseModel):
    id: int
    text: str
    author: str
    timestamp: datetime

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Schema for order responses; doctor is only populated on request"""
    id: int
    order_number: str
    doctor_id: int
    doctor: Optional[DoctorResponse] = None
    patient_name: str
    job_items: list[JobItemResponse]
    cost: float
    paid_amount: float
    balance: float
    status: str
    priority: str
    case_description: Optional[str]
    creation_date: datetime
    completion_date: Optional[datetime]
    payments: list[PaymentResponse]
    notes: list[NoteResponse]

    class Config:
        from_attributes = True

    @classmethod
    def from_order(cls, order, populate_doctor: bool = False) -> "OrderResponse":
        response = cls.from_orm(order)
        if not populate_doctor:
            response.doctor = None
        return response


class OrderListResponse(BaseModel):
    """Schema for paginated order list responses"""
    orders: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
