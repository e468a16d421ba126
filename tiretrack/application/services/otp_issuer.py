import logging
import math
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...exceptions import RateLimited, DeliveryFailed
from ...utils import utcnow
from ..locks import KeyedLock
from ..ports.otp_repo import OtpRepository, OtpRecord
from ..ports.sms_sender import SmsSender
from ..validators import normalize_phone, mask_phone

logger = logging.getLogger(__name__)


@dataclass
class OtpIssuer:
    otp_repo: OtpRepository
    sms_sender: SmsSender
    code_length: int = 6
    ttl_seconds: int = 300
    cooldown_seconds: int = 60
    clock: Callable[[], datetime] = utcnow
    _locks: KeyedLock = field(default_factory=KeyedLock, repr=False)

    def generate_code(self) -> str:
        return f"{secrets.randbelow(10 ** self.code_length):0{self.code_length}d}"

    def cooldown_remaining(self, record: Optional[OtpRecord], now: datetime) -> int:
        """Whole seconds left before another code may be sent, 0 when free."""
        if record is None or now > record.expires_at:
            return 0
        resend_at = record.last_sent_at + timedelta(seconds=self.cooldown_seconds)
        return max(0, math.ceil((resend_at - now).total_seconds()))

    def request_otp(self, phone: str) -> str:
        """Issue and deliver a fresh code.

        Returns the normalized phone number. Raises InvalidInput for a bad
        number, RateLimited while the cooldown is active and DeliveryFailed
        when the SMS gateway rejects the message. A failed delivery leaves the
        new record in place, so the cooldown still applies to it.
        """
        phone = normalize_phone(phone)

        with self._locks.hold(phone):
            now = self.clock()
            remaining = self.cooldown_remaining(self.otp_repo.get(phone), now)
            if remaining > 0:
                logger.info(f"OTP cooldown active for {mask_phone(phone)}: {remaining}s remaining")
                raise RateLimited(remaining)

            code = self.generate_code()
            self.otp_repo.save(OtpRecord(
                phone=phone,
                code=code,
                created_at=now,
                expires_at=now + timedelta(seconds=self.ttl_seconds),
                last_sent_at=now,
                attempts_used=0,
            ))

        result = self.sms_sender.send_otp(phone, code)
        if not result.ok:
            logger.error(f"Failed to send OTP to {mask_phone(phone)}: {result.error}")
            raise DeliveryFailed(result.error)

        logger.info(f"OTP sent to {mask_phone(phone)}")
        return phone
