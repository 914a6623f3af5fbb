import uuid
from datetime import date, datetime
from pydantic import BaseModel, Field, EmailStr

from models.ids import new_object_id, utcnow


class DonationEntry(BaseModel):
    entry_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    donor_email: EmailStr
    donor_name: str | None = None

    amount: float

    payment_id: str | None = None

    created_at: datetime = Field(default_factory=utcnow)


class DonationCampaign(BaseModel):
    campaign_id: str = Field(default_factory=new_object_id)
    owner_email: EmailStr

    pet_name: str
    pet_image: str | None = None
    max_amount: float
    last_date: date
    short_description: str | None = None
    long_description: str | None = None

    paused: bool = False
    donators: list[DonationEntry] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)

    def is_closed(self, today: date) -> bool:
        return today > self.last_date


class DonationHistoryEntry(DonationEntry):
    campaign_id: str
    pet_name: str | None = None
