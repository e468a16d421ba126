import re

from ..exceptions import InvalidInput

# Thai mobile numbers: 06x, 08x, 09x followed by 8 digits
THAI_MOBILE_RE = re.compile(r"^0[689]\d{8}$")
_SEPARATORS_RE = re.compile(r"[-\s]")


def normalize_phone(raw: str) -> str:
    """Strip separators and validate a Thai mobile number.

    Accepts ``0812345678``, ``081-234-5678`` and ``08 1234 5678``; the
    normalized form is the bare ten digits.
    """
    if not isinstance(raw, str):
        raise InvalidInput("Invalid Thai phone number format")
    phone = _SEPARATORS_RE.sub("", raw)
    if not THAI_MOBILE_RE.match(phone):
        raise InvalidInput("Invalid Thai phone number format")
    return phone


def validate_code(raw: str, length: int) -> str:
    if not isinstance(raw, str) or len(raw) != length or not (raw.isascii() and raw.isdigit()):
        raise InvalidInput(f"OTP must be {length} digits")
    return raw


def mask_phone(phone: str) -> str:
    """Mask phone number for display (e.g. 08x-xxx-x678)"""
    clean = _SEPARATORS_RE.sub("", phone)
    if len(clean) != 10:
        return phone
    return f"{clean[:2]}x-xxx-x{clean[7:]}"


def to_msisdn(phone: str) -> str:
    """International form for SMS gateways: 0812345678 -> +66812345678"""
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("0"):
        digits = "66" + digits[1:]
    elif not digits.startswith("66"):
        digits = "66" + digits
    return "+" + digits
