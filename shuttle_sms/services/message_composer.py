"""
Message composition: render a TripRecord into the customer notification.

The text has to match the customer-care template registered with the
brandname, so only the route, hour, date and hotline vary.
"""

from shuttle_sms.core.config import settings
from shuttle_sms.services.line_parser import TripRecord
from shuttle_sms.services.text_normalizer import collapse_whitespace, normalize_token

MESSAGE_TEMPLATE = (
    "Quy Khach Dat Thanh Cong Chuyen Xe {route} "
    "{hour} Ngay {date} "
    "Quy Khach Luu Lai SDT Tong Dai {hotline} "
    "De Tien Dat Xe Cho Chuyen Sau. Tran Trong!"
)

TEMPLATE_UNIT = "unit"    # "14h Ngay 25/12/2024"
TEMPLATE_PLAIN = "plain"  # "14 Ngay 25/12/2024"
TEMPLATE_VARIANTS = (TEMPLATE_UNIT, TEMPLATE_PLAIN)


def format_hour(hour: str, variant: str = TEMPLATE_UNIT) -> str:
    """Render the hour token, adding the "h" unit marker for the unit template"""
    token = collapse_whitespace(hour)
    if variant == TEMPLATE_UNIT:
        return token if token[-1:] in ("h", "H") else f"{token}h"
    return token


def compose_message(
    record: TripRecord,
    variant: str = settings.MESSAGE_TEMPLATE,
    hotline: str = settings.HOTLINE,
) -> str:
    """
    Build the notification text for one trip.

    The route is stripped of diacritics, whitespace-collapsed and
    upper-cased. The final text is collapsed once more so it never
    contains newlines or runs of spaces, whatever the tokens hold.
    """
    if variant not in TEMPLATE_VARIANTS:
        raise ValueError(f"Unknown message template: {variant!r}")

    text = MESSAGE_TEMPLATE.format(
        route=normalize_token(record.route),
        hour=format_hour(record.hour, variant),
        date=collapse_whitespace(record.date),
        hotline=hotline,
    )
    return collapse_whitespace(text)
