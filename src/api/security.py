from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.dependencies import get_auth_gate
from core.errors import Unauthenticated
from models.user import AuthContext
from services.auth_service import AuthGate

security = HTTPBearer(auto_error=False)


def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: AuthGate = Depends(get_auth_gate)
) -> AuthContext:
    """
    Resolves the caller before any route logic runs. A missing header or a
    non-Bearer scheme is rejected here without calling the identity provider.
    """
    if token is None:
        raise Unauthenticated("Missing bearer credential")

    return gate.authenticate(token.credentials)
