# app/api/deps.py
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app import crud
from app.core.config import settings
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.db.session import get_db
from app.models.profile import Profile
from app.schemas.token import TokenPayload
from app.services.identity.client import IdentityAdminClient, get_identity_client
from app.services.payment.provider_factory import get_payment_provider
from app.services.payment.provider_interface import PaymentProviderInterface
from app.services.translate.service import TranslationService, get_translation_service

logger = logging.getLogger(__name__)


# Tokens are issued by the identity provider. The tokenUrl is only used
# by the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> TokenPayload:
    if not token:
        raise UnauthorizedError("Not authenticated")
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.JWT_AUDIENCE,
        )
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise UnauthorizedError()


def get_current_profile(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(get_current_user),
) -> Profile:
    """The caller's profile, created from the token claims on first use."""
    profile = crud.profile.sync_from_claims(
        db, user_id=current_user.sub, email=current_user.email
    )
    if profile.deleted_at is not None:
        raise ForbiddenError("This account has been deleted")
    return profile


def require_admin(profile: Profile = Depends(get_current_profile)) -> Profile:
    """Admin capability comes from the persisted is_admin flag only."""
    if not profile.is_admin:
        logger.warning(f"Non-admin {profile.id} attempted an admin operation")
        raise ForbiddenError("Admin access required")
    return profile


def get_payment_provider_optional() -> Optional[PaymentProviderInterface]:
    try:
        return get_payment_provider("stripe")
    except ValueError:
        return None


def get_translator() -> TranslationService:
    return get_translation_service()


def get_identity_admin() -> IdentityAdminClient:
    return get_identity_client()
