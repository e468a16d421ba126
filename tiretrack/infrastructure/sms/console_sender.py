import logging

from ...application.ports.sms_sender import SmsSender, DeliveryResult
from ...application.validators import mask_phone


class ConsoleSmsSender(SmsSender):
    """Development sender: writes the code to the log instead of texting it."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def send_otp(self, phone: str, code: str) -> DeliveryResult:
        self._logger.info(f"Console SMS provider - OTP for {mask_phone(phone)}: {code}")
        return DeliveryResult(ok=True)
