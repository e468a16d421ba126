from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class OtpRecord:
    phone: str
    code: str
    created_at: datetime
    expires_at: datetime
    last_sent_at: datetime
    attempts_used: int = 0


class OtpRepository(Protocol):
    def get(self, phone: str) -> Optional[OtpRecord]:
        ...

    def save(self, record: OtpRecord) -> None:
        """Insert or overwrite the record for ``record.phone``."""
        ...

    def increment_attempts(self, phone: str, limit: int) -> Optional[int]:
        """Atomically count one failed attempt while attempts_used < limit.

        Returns the new count, or None when there is no record or it is
        already at the limit.
        """
        ...

    def consume(self, phone: str, code: str) -> bool:
        """Atomically delete the record if it still holds ``code``.

        Returns True for exactly one caller per issued code.
        """
        ...

    def delete(self, phone: str) -> None:
        ...
