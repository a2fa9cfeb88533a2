"""JWT Token Validation for back office bearer tokens"""
import jwt
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """Shared-secret JWT validator for tokens issued by the procurement back office"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry

        Args:
            token: Bearer token, with or without the 'Bearer ' prefix

        Returns:
            Decoded token claims

        Raises:
            AuthenticationError: If token is invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": True, "require": ["sub"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str) -> ActorContext:
        """Map token claims to the acting user"""
        claims = self.validate_token(token)

        company = claims.get("company")
        if isinstance(company, dict):
            company = company.get("_id") or company.get("id")

        actor = ActorContext(
            user_id=str(claims["sub"]),
            company_id=str(company) if company else None,
            email=claims.get("email") or None,
            display_name=claims.get("name"),
            role=claims.get("role"),
        )
        logger.debug(
            f"Authenticated user: {actor.email or actor.user_id}",
            extra={"user_id": actor.user_id, "company_id": actor.company_id}
        )
        return actor


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """
    Get current user from authorization header

    Raises:
        AuthenticationError: Header missing or token invalid
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")

    return get_jwt_validator().get_actor_context(authorization)
