from datetime import date
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from models.donation import DonationEntry


class RegisterUserRequest(BaseModel):
    name: Optional[str] = None


class UserProfileResponse(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    user_id: str
    role: str


class CurrentUserResponse(BaseModel):
    subject_id: str
    email: EmailStr
    role: str
    name: Optional[str] = None


class PetCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    image: Optional[str] = None
    age: Optional[str] = None
    location: Optional[str] = None
    short_description: Optional[str] = None
    long_description: Optional[str] = None


class PetCreatedResponse(BaseModel):
    pet_id: str


class AdoptionCreateRequest(BaseModel):
    pet_id: str
    phone: str
    address: str


class AdoptionCreatedResponse(BaseModel):
    adoption_id: str


class CampaignCreateRequest(BaseModel):
    pet_name: str = Field(min_length=1)
    pet_image: Optional[str] = None
    max_amount: float = Field(gt=0, allow_inf_nan=False)
    last_date: date
    short_description: Optional[str] = None
    long_description: Optional[str] = None


class CampaignCreatedResponse(BaseModel):
    campaign_id: str


class PauseResponse(BaseModel):
    campaign_id: str
    paused: bool


class PledgeRequest(BaseModel):
    amount: float = Field(gt=0, allow_inf_nan=False)


class DonationIntentRequest(BaseModel):
    campaign_id: str
    amount: float = Field(gt=0, allow_inf_nan=False)


class DonationIntentResponse(BaseModel):
    client_secret: str


class SaveDonationRequest(BaseModel):
    campaign_id: str
    amount: float = Field(gt=0, allow_inf_nan=False)
    payment_id: str


class RefundResponse(BaseModel):
    campaign_id: str
    removed: list[DonationEntry]
