from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class SessionRecord:
    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime
    ip_address: Optional[str] = None


class DuplicateToken(Exception):
    pass


class SessionRepository(Protocol):
    def create(self, record: SessionRecord) -> SessionRecord:
        """Persist a new session; raises DuplicateToken if the token is taken."""
        ...

    def get_by_token(self, token: str) -> Optional[SessionRecord]:
        ...

    def delete(self, token: str) -> None:
        ...
