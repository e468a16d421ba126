import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from ...exceptions import InvalidCode
from ...utils import utcnow
from ..ports.otp_repo import OtpRepository
from ..ports.user_repo import UserRepository, UserRecord
from ..validators import normalize_phone, validate_code, mask_phone
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class OtpVerifier:
    otp_repo: OtpRepository
    user_repo: UserRepository
    sessions: SessionManager
    code_length: int = 6
    max_attempts: int = 5
    bypass_code: Optional[str] = None
    clock: Callable[[], datetime] = utcnow

    def verify_otp(self, phone: str, code: str, ip_address: Optional[str] = None) -> Tuple[UserRecord, str]:
        """Check ``code`` for ``phone`` and open a session.

        Returns ``(user, session_token)``. Every rejection raises InvalidCode
        with the same message; ``attempts_remaining`` is set only when a wrong
        code was counted or the budget is gone.
        """
        phone = normalize_phone(phone)
        code = validate_code(code, self.code_length)

        if self.bypass_code and hmac.compare_digest(code.encode(), self.bypass_code.encode()):
            logger.warning(f"Development bypass code used for {mask_phone(phone)}")
            self.otp_repo.delete(phone)
            return self._issue(phone, ip_address)

        record = self.otp_repo.get(phone)
        if record is None:
            logger.info(f"No OTP found for {mask_phone(phone)}")
            raise InvalidCode()

        if self.clock() > record.expires_at:
            logger.info(f"OTP expired for {mask_phone(phone)}")
            self.otp_repo.delete(phone)
            raise InvalidCode()

        if record.attempts_used >= self.max_attempts:
            logger.info(f"OTP attempts exhausted for {mask_phone(phone)}")
            self.otp_repo.delete(phone)
            raise InvalidCode(attempts_remaining=0)

        if not hmac.compare_digest(code.encode(), record.code.encode()):
            attempts = self.otp_repo.increment_attempts(phone, self.max_attempts)
            if attempts is None:
                # another request used the last attempt first
                self.otp_repo.delete(phone)
                raise InvalidCode(attempts_remaining=0)
            remaining = max(0, self.max_attempts - attempts)
            logger.info(f"Invalid OTP for {mask_phone(phone)}, {remaining} attempts remaining")
            raise InvalidCode(attempts_remaining=remaining)

        if not self.otp_repo.consume(phone, record.code):
            # a concurrent request already used this code, or a resend replaced it
            logger.info(f"OTP already consumed for {mask_phone(phone)}")
            raise InvalidCode()
        return self._issue(phone, ip_address)

    def _issue(self, phone: str, ip_address: Optional[str]) -> Tuple[UserRecord, str]:
        user = self.user_repo.get_or_create_by_phone(phone)
        self.user_repo.touch_last_login(user.id, self.clock())
        token = self.sessions.create(user.id, ip_address=ip_address)
        return user, token
