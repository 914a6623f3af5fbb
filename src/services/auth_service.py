import logging

from core.errors import Forbidden, Unauthenticated
from data_access.dynamodb import UserRepository
from models.user import DEFAULT_ROLE, AuthContext

logger = logging.getLogger(__name__)


class RoleResolver:
    def __init__(self, users: UserRepository, default_role: str = DEFAULT_ROLE):
        self.users = users
        self.default_role = default_role

    def resolve(self, email: str) -> str:
        profile = self.users.get_user_profile(email)
        if profile is None:
            return self.default_role
        return profile.get("role") or self.default_role


class AuthGate:
    """Turns a raw bearer credential into an AuthContext, or raises Unauthenticated."""

    def __init__(self, verifier, role_resolver: RoleResolver):
        self.verifier = verifier
        self.role_resolver = role_resolver

    def authenticate(self, credential: str | None) -> AuthContext:
        if not credential or not credential.strip():
            raise Unauthenticated("Missing bearer credential")

        subject = self.verifier.verify(credential.strip())
        role = self.role_resolver.resolve(subject.email)

        return AuthContext(
            subject_id=subject.subject_id,
            email=subject.email,
            role=role,
            name=subject.name,
        )


def authorize(context: AuthContext, owner_email: str) -> bool:
    # No role bypasses ownership.
    return context.email == owner_email


def ensure_owner(context: AuthContext, owner_email: str) -> None:
    if not authorize(context, owner_email):
        logger.warning(f"{context.email} denied on resource owned by {owner_email}")
        raise Forbidden()
