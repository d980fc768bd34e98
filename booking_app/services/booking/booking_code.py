# booking_app/services/booking/booking_code.py
import secrets

from booking_app.config.settings import get_settings

settings = get_settings()

# No 0/O or 1/I, codes get read out over the phone
ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_booking_code(prefix: str = None, length: int = None) -> str:
    """Random customer-facing code such as BK-7KQ2MX; uniqueness is enforced by the database"""
    prefix = prefix or settings.BOOKING_CODE_PREFIX
    length = length or settings.BOOKING_CODE_LENGTH
    return f"{prefix}-{''.join(secrets.choice(ALPHABET) for _ in range(length))}"
