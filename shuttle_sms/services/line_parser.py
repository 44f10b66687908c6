"""
Line parsing: turn one raw operator line into a TripRecord.

Two strategies exist and a deployment picks one through LINE_PARSER:

- freetext:  "0912345678 Sai Gon Vung Tau 14 25/12/2024"
  The date is located first, then the hour right before it, then the
  phone at the start. Whatever sits between phone and hour is the route.
- delimited: "0912345678<TAB>Sai Gon Vung Tau<TAB>14<TAB>25/12/2024"
  Strict column split, the first four non-empty columns are used.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import re

from shuttle_sms.core.config import settings
from shuttle_sms.core.errors import ParseError

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b")
# Trailing hour, an "h" unit marker after it is tolerated ("14", "14h", "14 h")
HOUR_RE = re.compile(r"(\d+)\s*[hH]?$")
PHONE_PREFIX_RE = re.compile(r"^\d{9,11}(?!\d)")
PHONE_RE = re.compile(r"^\d{9,11}$")

MIN_COLUMNS = 4


@dataclass(frozen=True)
class TripRecord:
    """One scheduled trip, as read from an input line"""
    phone: str
    route: str
    hour: str
    date: str


class LineParser(ABC):
    """Common interface of the parsing strategies"""

    name: str = ""

    @abstractmethod
    def parse(self, line: str) -> TripRecord:
        """Parse one line. Raises ParseError, never returns a partial record."""

    @abstractmethod
    def best_effort_phone(self, line: str) -> str:
        """What to log as the phone of a line that could not be parsed"""


class FreeTextLineParser(LineParser):
    """Anchored extraction from free text: date, then hour, then phone, rest is route"""

    name = "freetext"

    def parse(self, line: str) -> TripRecord:
        clean = line.strip()

        date_match = DATE_RE.search(clean)
        if not date_match:
            raise ParseError("Khong tim thay ngay (dd/mm/yyyy)", field="date")
        date = date_match.group(0)

        before_date = clean[:date_match.start()].strip()
        hour_match = HOUR_RE.search(before_date)
        if not hour_match:
            raise ParseError("Khong tim thay gio chay", field="hour")
        hour = hour_match.group(1)

        before_hour = before_date[:hour_match.start()].strip()
        phone_match = PHONE_PREFIX_RE.match(before_hour)
        if not phone_match:
            raise ParseError("Khong tim thay so dien thoai", field="phone")
        phone = phone_match.group(0)

        # Internal spacing of the route is kept as typed
        route = before_hour[phone_match.end():].strip()
        if not route:
            raise ParseError("Khong tim thay tuyen xe", field="route")

        return TripRecord(phone=phone, route=route, hour=hour, date=date)

    def best_effort_phone(self, line: str) -> str:
        return line.strip()


class DelimitedLineParser(LineParser):
    """Strict column parsing: phone, route, hour, date"""

    name = "delimited"

    def __init__(self, separator: str = "\t"):
        if not separator:
            raise ValueError("Column separator must not be empty")
        self.separator = separator

    def _segments(self, line: str) -> list:
        return [seg.strip() for seg in line.split(self.separator) if seg.strip()]

    def parse(self, line: str) -> TripRecord:
        segments = self._segments(line)
        if len(segments) < MIN_COLUMNS:
            raise ParseError(
                f"Dong phai co it nhat {MIN_COLUMNS} cot (SDT, tuyen, gio, ngay), "
                f"nhan duoc {len(segments)}",
                field="columns",
            )

        phone, route, hour, date = segments[:MIN_COLUMNS]
        if not PHONE_RE.match(phone):
            raise ParseError("So dien thoai khong hop le", field="phone")

        return TripRecord(phone=phone, route=route, hour=hour, date=date)

    def best_effort_phone(self, line: str) -> str:
        segments = self._segments(line)
        return segments[0] if segments else ""


def get_line_parser(
    name: str = settings.LINE_PARSER,
    separator: str = settings.COLUMN_SEPARATOR,
) -> LineParser:
    """Build the parser selected by configuration"""
    key = (name or "").strip().lower()
    if key == FreeTextLineParser.name:
        return FreeTextLineParser()
    if key == DelimitedLineParser.name:
        return DelimitedLineParser(separator=separator)
    raise ValueError(f"Unknown line parser: {name!r} (expected 'freetext' or 'delimited')")
