from pydantic import BaseModel, Field, computed_field
from typing import Optional
from datetime import datetime
from enum import Enum


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


# Hostel Model
class Hostel(BaseModel):
    id: Optional[str] = None
    name: str
    location: str
    admin_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Room Model
class Room(BaseModel):
    id: Optional[str] = None
    hostel_id: str
    room_number: str
    rent: float = Field(..., gt=0)
    capacity: int = Field(..., ge=1)
    status: RoomStatus = Field(default=RoomStatus.AVAILABLE)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Tenure Model (a hostel resident)
class Tenure(BaseModel):
    id: Optional[str] = None
    hostel_id: str
    room_id: str
    name: str
    email: str
    phone_number: Optional[str] = None
    registration_number: str  # REG-XXXXXX, handed to the tenure for signup
    user_id: Optional[str] = None  # Firebase uid once the record is claimed
    payment_status: Optional[PaymentStatus] = None  # derived from bills in listings
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def is_claimed(self) -> bool:
        return bool(self.user_id)

# Billing Record Model
class BillingRecord(BaseModel):
    id: Optional[str] = None
    tenure_id: str
    hostel_id: str
    rent_amount: float
    electricity_bill: float = Field(default=0, ge=0)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    payment_date: Optional[datetime] = None
    billing_period: Optional[str] = None  # YYYY-MM
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def total(self) -> float:
        return round(self.rent_amount + self.electricity_bill, 2)

# Notice Model
class Notice(BaseModel):
    id: Optional[str] = None
    hostel_id: str
    title: str
    content: str
    created_at: Optional[datetime] = None
