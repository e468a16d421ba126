import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import InvalidInput, RateLimited, DeliveryFailed, InvalidCode
from ..ports.audit_logger import AuditLogger
from ..ports.session_repo import SessionRecord
from ..ports.user_repo import UserRepository, UserRecord
from ..validators import mask_phone
from .otp_issuer import OtpIssuer
from .otp_verifier import OtpVerifier
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class AuthGateway:
    """UI-facing entry point: sequences the OTP and session services and
    turns their exceptions into plain result dicts."""

    issuer: OtpIssuer
    verifier: OtpVerifier
    sessions: SessionManager
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def _audit(self, action: str, phone: str, **kwargs: Any) -> None:
        if self.audit is not None:
            self.audit.log(action, phone, **kwargs)

    def request_otp(self, phone: str, ip_address: Optional[str] = None) -> Dict[str, Any]:
        try:
            normalized = self.issuer.request_otp(phone)
        except InvalidInput as e:
            self._audit("request_otp", str(phone), ip_address=ip_address, success=False, details={"reason": "invalid_input"})
            return {"success": False, "error": e.message}
        except RateLimited as e:
            self._audit("request_otp", phone, ip_address=ip_address, success=False, details={"reason": "cooldown", "remaining_seconds": e.remaining_seconds})
            return {"success": False, "cooldown_seconds": e.remaining_seconds, "error": e.message}
        except DeliveryFailed as e:
            self._audit("request_otp", phone, ip_address=ip_address, success=False, details={"reason": "delivery_failed", "error": e.message})
            return {"success": False, "error": e.message}

        self._audit("request_otp", normalized, ip_address=ip_address)
        return {"success": True, "phone_masked": mask_phone(normalized)}

    def verify_otp(self, phone: str, code: str, ip_address: Optional[str] = None) -> Dict[str, Any]:
        try:
            user, token = self.verifier.verify_otp(phone, code, ip_address=ip_address)
        except InvalidInput as e:
            self._audit("verify_otp", str(phone), ip_address=ip_address, success=False, details={"reason": "invalid_input"})
            return {"success": False, "error": e.message}
        except InvalidCode as e:
            self._audit("verify_otp", phone, ip_address=ip_address, success=False, details={"attempts_remaining": e.attempts_remaining})
            response: Dict[str, Any] = {"success": False, "error": e.message}
            if e.attempts_remaining is not None:
                response["attempts_remaining"] = e.attempts_remaining
            return response

        self._audit("verify_otp", user.phone, user_id=user.id, ip_address=ip_address)
        return {"success": True, "session_token": token}

    def logout(self, token: Optional[str]) -> Dict[str, Any]:
        record = self.sessions.resolve(token)
        self.sessions.destroy(token)
        if record is not None:
            logger.info(f"Logout completed for user {record.user_id}")
        return {"success": True}

    def resolve_session(self, token: Optional[str]) -> Optional[SessionRecord]:
        return self.sessions.resolve(token)

    def current_user(self, token: Optional[str]) -> Optional[UserRecord]:
        record = self.sessions.resolve(token)
        if record is None:
            return None
        return self.user_repo.get_by_id(record.user_id)
