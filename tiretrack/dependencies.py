import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.engine import Engine

from .core.config import Settings
from .utils import utcnow
from .exceptions import SessionInvalid
from .application.ports.rate_limiter import RateLimiter
from .application.ports.sms_sender import SmsSender
from .application.ports.user_repo import UserRecord
from .application.services.auth_gateway import AuthGateway
from .application.services.otp_issuer import OtpIssuer
from .application.services.otp_verifier import OtpVerifier
from .application.services.session_manager import SessionManager
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.memory.repositories import (
    InMemoryOtpRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
)
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.session_repository_sql import SqlSessionRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.sms.console_sender import ConsoleSmsSender

logger = logging.getLogger(__name__)


def build_sms_sender(settings: Settings) -> SmsSender:
    provider = settings.SMS_PROVIDER.lower()
    if provider == "twilio":
        from .infrastructure.sms.twilio_sender import TwilioSmsSender
        return TwilioSmsSender.from_credentials(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_FROM_NUMBER,
            message_template=settings.SMS_MESSAGE_TEMPLATE,
        )
    if provider != "console":
        raise ValueError(f"Unknown SMS_PROVIDER: {settings.SMS_PROVIDER}")
    if settings.is_production:
        logger.warning("Console SMS provider in production: OTP codes are only logged")
    return ConsoleSmsSender()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.REDIS_URL:
        return RedisRateLimiter(url=settings.REDIS_URL)
    return InMemoryRateLimiter()


def build_auth_gateway(
    settings: Settings,
    engine: Optional[Engine] = None,
    sms_sender: Optional[SmsSender] = None,
    clock: Callable[[], datetime] = utcnow,
) -> AuthGateway:
    """Wire repositories, SMS sender and services according to settings."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "sql":
        if engine is None:
            raise ValueError("STORAGE_BACKEND=sql requires a database engine")
        otp_repo = SqlOtpRepository(engine)
        user_repo = SqlUserRepository(engine)
        session_repo = SqlSessionRepository(engine)
    elif backend == "memory":
        otp_repo = InMemoryOtpRepository()
        user_repo = InMemoryUserRepository()
        session_repo = InMemorySessionRepository()
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

    bypass_code = None
    if settings.OTP_DEV_BYPASS_CODE:
        if settings.is_production:
            logger.warning("OTP_DEV_BYPASS_CODE is ignored in production")
        else:
            bypass_code = settings.OTP_DEV_BYPASS_CODE

    if settings.is_production and not settings.AUDIT_HASH_SECRET:
        logger.warning("AUDIT_HASH_SECRET is not set: audit phone hashes are unkeyed")

    sessions = SessionManager(
        session_repo=session_repo,
        ttl_seconds=settings.session_ttl_seconds,
        clock=clock,
    )
    issuer = OtpIssuer(
        otp_repo=otp_repo,
        sms_sender=sms_sender or build_sms_sender(settings),
        code_length=settings.OTP_CODE_LENGTH,
        ttl_seconds=settings.OTP_TTL_SECONDS,
        cooldown_seconds=settings.OTP_COOLDOWN_SECONDS,
        clock=clock,
    )
    verifier = OtpVerifier(
        otp_repo=otp_repo,
        user_repo=user_repo,
        sessions=sessions,
        code_length=settings.OTP_CODE_LENGTH,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        bypass_code=bypass_code,
        clock=clock,
    )
    return AuthGateway(
        issuer=issuer,
        verifier=verifier,
        sessions=sessions,
        user_repo=user_repo,
        audit=StdAuditLogger(secret=settings.AUDIT_HASH_SECRET),
    )


# ------------------------
# FastAPI dependencies
# ------------------------

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_gateway(request: Request) -> AuthGateway:
    return request.app.state.auth_gateway


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    # Fallback to cookie
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    gateway: AuthGateway = Depends(get_auth_gateway),
) -> UserRecord:
    user = gateway.current_user(token)
    if user is None:
        raise HTTPException(status_code=401, detail=SessionInvalid.message)
    return user
