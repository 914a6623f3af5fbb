from datetime import datetime
from pydantic import BaseModel, Field, EmailStr

from models.ids import new_object_id, utcnow


class Pet(BaseModel):
    pet_id: str = Field(default_factory=new_object_id)
    owner_email: EmailStr

    name: str
    category: str
    image: str | None = None
    age: str | None = None
    location: str | None = None
    short_description: str | None = None
    long_description: str | None = None

    # Flipped to True only by an accepted adoption, never back.
    adopted: bool = False

    created_at: datetime = Field(default_factory=utcnow)
