import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...utils import utcnow
from ..ports.session_repo import SessionRepository, SessionRecord, DuplicateToken

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 3


@dataclass
class SessionManager:
    session_repo: SessionRepository
    ttl_seconds: int = 30 * 24 * 60 * 60
    token_bytes: int = 48
    clock: Callable[[], datetime] = utcnow

    def create(self, user_id: str, ip_address: Optional[str] = None) -> str:
        for _ in range(MAX_TOKEN_ATTEMPTS):
            now = self.clock()
            token = secrets.token_urlsafe(self.token_bytes)
            try:
                self.session_repo.create(SessionRecord(
                    token=token,
                    user_id=user_id,
                    created_at=now,
                    expires_at=now + timedelta(seconds=self.ttl_seconds),
                    ip_address=ip_address,
                ))
            except DuplicateToken:
                logger.warning("Session token collision, generating a new one")
                continue
            logger.info(f"Session created for user {user_id}")
            return token
        raise RuntimeError("Could not allocate a unique session token")

    def resolve(self, token: Optional[str]) -> Optional[SessionRecord]:
        """Active session for ``token``; None means anonymous."""
        if not token:
            return None
        record = self.session_repo.get_by_token(token)
        if record is None:
            return None
        if self.clock() > record.expires_at:
            logger.info(f"Session expired for user {record.user_id}")
            return None
        return record

    def destroy(self, token: Optional[str]) -> None:
        if token:
            self.session_repo.delete(token)
