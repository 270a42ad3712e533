"""
Pydantic schemas for the doctor directory
"""

from pydantic import BaseModel, Field, validator, EmailStr
from typing import Optional
import re


def _validate_phone(v):
    if v is None or v == "":
        return v
    digits_only = re.sub(r'\D', '', v)
    if len(digits_only) < 7:
        raise ValueError('Phone number must have at least 7 digits')
    return v


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class DoctorBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=20, description="Title, e.g. 'Dr.' or 'Dra.'")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: Optional[str] = Field(None, max_length=100, description="Last name")
    email: Optional[EmailStr] = Field(None, description="Contact email")
    phone: str = Field(..., max_length=30, description="Contact phone")
    address: Optional[str] = Field(None, description="Practice address")

    @validator('email', pre=True)
    def empty_email(cls, v):
        return _blank_to_none(v)

    @validator('phone')
    def validate_phone(cls, v):
        return _validate_phone(v)


class DoctorCreate(DoctorBase):
    """Schema for registering a doctor"""
    pass


class DoctorUpdate(BaseModel):
    """Schema for updating a doctor"""
    title: Optional[str] = Field(None, min_length=1, max_length=20)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = Field(None)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None)

    @validator('email', pre=True)
    def empty_email(cls, v):
        return _blank_to_none(v)

    @validator('phone')
    def validate_phone(cls, v):
        return _validate_phone(v)


class DoctorResponse(BaseModel):
    id: int
    title: str
    first_name: str
    last_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    full_name: str

    class Config:
        from_attributes = True
