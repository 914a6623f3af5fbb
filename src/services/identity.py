import logging

import jwt
from pydantic import ValidationError

from core.errors import Unauthenticated, Upstream
from models.user import VerifiedSubject

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["RS256"]


class CognitoIdentityVerifier:
    """
    Verifies Cognito ID tokens against the user pool's JWKS.

    Every verification failure (expired, bad signature, wrong audience or
    issuer, not an ID token, unverified email) surfaces as the same
    ``Unauthenticated`` error. Only an unreachable JWKS endpoint is reported
    as ``Upstream``.
    """

    def __init__(self, jwks_client: jwt.PyJWKClient, issuer: str, audience: str):
        self.jwks_client = jwks_client
        self.issuer = issuer
        self.audience = audience

    def verify(self, token: str) -> VerifiedSubject:
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=JWT_ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "email"]},
            )
        except jwt.PyJWKClientConnectionError as e:
            logger.error(f"Could not reach identity provider: {e}")
            raise Upstream("Identity provider unavailable") from e
        except jwt.PyJWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            raise Unauthenticated() from e

        if claims.get("token_use") != "id" or not claims.get("email_verified"):
            logger.info(f"Rejected token for subject {claims.get('sub')}: not a verified ID token")
            raise Unauthenticated()

        try:
            return VerifiedSubject(
                subject_id=claims["sub"],
                email=claims["email"],
                name=claims.get("name"),
            )
        except ValidationError as e:
            raise Unauthenticated() from e
