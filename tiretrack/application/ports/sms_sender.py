from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DeliveryResult:
    ok: bool
    error: Optional[str] = None


class SmsSender(Protocol):
    def send_otp(self, phone: str, code: str) -> DeliveryResult:
        ...
