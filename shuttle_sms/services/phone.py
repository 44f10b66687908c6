"""
Phone number helpers.
"""

from shuttle_sms.core.config import settings


def normalize_phone(
    phone: str,
    trunk_prefix: str = settings.TRUNK_PREFIX,
    country_code: str = settings.COUNTRY_CODE,
) -> str:
    """
    Rewrite a local-format number into international format.

    A leading trunk prefix digit is replaced by the country code
    (0912345678 -> 84912345678). Anything else is returned unchanged,
    so the function is total and idempotent on numbers that already
    carry the country code. No validation happens here.
    """
    if trunk_prefix and phone.startswith(trunk_prefix):
        return country_code + phone[len(trunk_prefix):]
    return phone
