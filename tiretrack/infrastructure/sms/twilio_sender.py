import logging

import requests
from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from ...application.ports.sms_sender import SmsSender, DeliveryResult
from ...application.validators import to_msisdn, mask_phone

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_TEMPLATE = "Your TireTrack verification code is {code}"


class TwilioSmsSender(SmsSender):
    def __init__(self, client: Client, from_number: str, message_template: str = DEFAULT_MESSAGE_TEMPLATE):
        self.client = client
        self.from_number = from_number
        self.message_template = message_template

    @classmethod
    def from_credentials(cls, account_sid: str, auth_token: str, from_number: str, message_template: str = DEFAULT_MESSAGE_TEMPLATE) -> "TwilioSmsSender":
        return cls(Client(account_sid, auth_token), from_number, message_template)

    def send_otp(self, phone: str, code: str) -> DeliveryResult:
        if not self.from_number:
            return DeliveryResult(ok=False, error="Twilio sender number not configured")
        try:
            message = self.client.messages.create(
                to=to_msisdn(phone),
                from_=self.from_number,
                body=self.message_template.format(code=code),
            )
        except TwilioException as e:
            logger.error(f"Twilio rejected OTP message for {mask_phone(phone)}: {e}")
            return DeliveryResult(ok=False, error=str(e))
        except requests.RequestException as e:
            logger.error(f"Could not reach Twilio for {mask_phone(phone)}: {e}")
            return DeliveryResult(ok=False, error=str(e))
        logger.info(f"Twilio accepted OTP message {message.sid}")
        return DeliveryResult(ok=True)
