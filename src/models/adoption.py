from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field, EmailStr

from models.ids import new_object_id, utcnow


AdoptionStatus = Literal["pending", "accepted", "rejected"]

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


class ContactInfo(BaseModel):
    phone: str
    address: str


class AdoptionRequest(BaseModel):
    adoption_id: str = Field(default_factory=new_object_id)

    # Reference only; the pet owner decides on the request.
    pet_id: str
    pet_name: str
    pet_image: str | None = None

    requester_email: EmailStr
    requester_name: str | None = None
    phone: str
    address: str

    status: AdoptionStatus = PENDING
    created_at: datetime = Field(default_factory=utcnow)
