from datetime import datetime
from pydantic import BaseModel, Field, EmailStr

from models.ids import utcnow

DEFAULT_ROLE = "user"


class UserProfile(BaseModel):
    email: EmailStr
    name: str | None = None
    user_id: str  # The 'sub' from the Cognito JWT
    role: str = DEFAULT_ROLE
    created_at: datetime = Field(default_factory=utcnow)


class VerifiedSubject(BaseModel):
    subject_id: str
    email: EmailStr
    name: str | None = None


class AuthContext(BaseModel):
    subject_id: str
    email: EmailStr
    role: str = DEFAULT_ROLE
    name: str | None = None
