import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_phone_number(phone: str, secret: Optional[str] = None) -> str:
    """Hash phone number for security (one-way hash).

    With ``secret`` set this is an HMAC-SHA256, so the small space of phone
    numbers cannot be enumerated without the key.
    """
    if secret:
        return hmac.new(secret.encode(), phone.encode(), hashlib.sha256).hexdigest()
    return hashlib.sha256(phone.encode()).hexdigest()
