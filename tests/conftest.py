from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import pytest

from tiretrack.application.ports.sms_sender import SmsSender, DeliveryResult
from tiretrack.application.services.auth_gateway import AuthGateway
from tiretrack.application.services.otp_issuer import OtpIssuer
from tiretrack.application.services.otp_verifier import OtpVerifier
from tiretrack.application.services.session_manager import SessionManager
from tiretrack.infrastructure.persistence.memory.repositories import (
    InMemoryOtpRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
)


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSms(SmsSender):
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.fail_with: Optional[str] = None

    def send_otp(self, phone: str, code: str) -> DeliveryResult:
        self.sent.append((phone, code))
        if self.fail_with:
            return DeliveryResult(ok=False, error=self.fail_with)
        return DeliveryResult(ok=True)

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, phone, user_id=None, ip_address=None, success=True, details=None):
        self.entries.append({"action": action, "phone": phone, "user_id": user_id, "success": success, "details": details or {}})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def otp_repo():
    return InMemoryOtpRepository()


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def session_repo():
    return InMemorySessionRepository()


@pytest.fixture
def sessions(session_repo, clock):
    return SessionManager(session_repo=session_repo, ttl_seconds=30 * 24 * 3600, clock=clock)


@pytest.fixture
def issuer(otp_repo, sms, clock):
    return OtpIssuer(otp_repo=otp_repo, sms_sender=sms, code_length=6, ttl_seconds=300, cooldown_seconds=60, clock=clock)


@pytest.fixture
def verifier(otp_repo, user_repo, sessions, clock):
    return OtpVerifier(otp_repo=otp_repo, user_repo=user_repo, sessions=sessions, code_length=6, max_attempts=5, clock=clock)


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def gateway(issuer, verifier, sessions, user_repo, audit):
    return AuthGateway(issuer=issuer, verifier=verifier, sessions=sessions, user_repo=user_repo, audit=audit)
