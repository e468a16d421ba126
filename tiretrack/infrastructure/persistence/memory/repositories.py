import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from ....application.ports.otp_repo import OtpRepository, OtpRecord
from ....application.ports.session_repo import SessionRepository, SessionRecord, DuplicateToken
from ....application.ports.user_repo import UserRepository, UserRecord
from ....application.validators import mask_phone
from ....utils import utcnow


class InMemoryOtpRepository(OtpRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: Dict[str, OtpRecord] = {}

    def get(self, phone: str) -> Optional[OtpRecord]:
        with self._lock:
            rec = self._store.get(phone)
            return replace(rec) if rec else None

    def save(self, record: OtpRecord) -> None:
        with self._lock:
            self._store[record.phone] = replace(record)

    def increment_attempts(self, phone: str, limit: int) -> Optional[int]:
        with self._lock:
            rec = self._store.get(phone)
            if rec is None or rec.attempts_used >= limit:
                return None
            rec.attempts_used += 1
            return rec.attempts_used

    def consume(self, phone: str, code: str) -> bool:
        with self._lock:
            rec = self._store.get(phone)
            if rec is None or rec.code != code:
                return False
            del self._store[phone]
            return True

    def delete(self, phone: str) -> None:
        with self._lock:
            self._store.pop(phone, None)


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: Dict[str, UserRecord] = {}
        self._by_phone: Dict[str, str] = {}

    def get_by_phone(self, phone: str) -> Optional[UserRecord]:
        with self._lock:
            user_id = self._by_phone.get(phone)
            return replace(self._by_id[user_id]) if user_id else None

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            user = self._by_id.get(user_id)
            return replace(user) if user else None

    def get_or_create_by_phone(self, phone: str) -> UserRecord:
        with self._lock:
            user_id = self._by_phone.get(phone)
            if user_id is None:
                user = UserRecord(id=str(uuid.uuid4()), phone=phone, phone_masked=mask_phone(phone), created_at=utcnow())
                self._by_id[user.id] = user
                self._by_phone[phone] = user.id
                user_id = user.id
            return replace(self._by_id[user_id])

    def touch_last_login(self, user_id: str, when: datetime) -> None:
        with self._lock:
            user = self._by_id.get(user_id)
            if user:
                user.last_login = when


class InMemorySessionRepository(SessionRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: Dict[str, SessionRecord] = {}

    def create(self, record: SessionRecord) -> SessionRecord:
        with self._lock:
            if record.token in self._store:
                raise DuplicateToken(record.token)
            self._store[record.token] = replace(record)
            return replace(record)

    def get_by_token(self, token: str) -> Optional[SessionRecord]:
        with self._lock:
            rec = self._store.get(token)
            return replace(rec) if rec else None

    def delete(self, token: str) -> None:
        with self._lock:
            self._store.pop(token, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
