from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class UserRecord:
    id: str
    phone: str
    phone_masked: str
    created_at: datetime
    display_name: Optional[str] = None
    last_login: Optional[datetime] = None


class UserRepository(Protocol):
    def get_by_phone(self, phone: str) -> Optional[UserRecord]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    def get_or_create_by_phone(self, phone: str) -> UserRecord:
        ...

    def touch_last_login(self, user_id: str, when: datetime) -> None:
        ...
