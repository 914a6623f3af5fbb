from data_access.dynamodb import UserRepository
from models.user import AuthContext, UserProfile


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    def register(self, context: AuthContext, name: str | None = None) -> dict:
        """Idempotent: an existing profile is returned untouched, role included."""
        profile = UserProfile(
            email=context.email,
            user_id=context.subject_id,
            name=name or context.name,
        )
        return self.users.create_user_profile(profile)
