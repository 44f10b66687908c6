"""
SMS dispatcher: preview and bulk send of trip notifications.

A batch is processed strictly one line at a time:
parse -> compose -> normalize phone -> gateway call -> classify -> log -> wait.
Every line produces exactly one DispatchResult, whatever happens to it.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import logging
import time

from shuttle_sms.core.config import settings
from shuttle_sms.core.errors import (
    GatewayRejectedError,
    GatewayResponseError,
    GatewayUnavailableError,
    ParseError,
)
from shuttle_sms.core.models import DispatchResult, DispatchStatus, ErrorType, PreviewItem
from shuttle_sms.database.log_store import LogStore
from shuttle_sms.services.line_parser import LineParser, TripRecord
from shuttle_sms.services.message_composer import compose_message
from shuttle_sms.services.phone import normalize_phone
from shuttle_sms.services.rate_limiter import FixedIntervalScheduler
from shuttle_sms.services.sms_gateway_client import BrandSmsClient

logger = logging.getLogger(__name__)

SUCCESS_CODE = "000"
NETWORK_CODE = "NETWORK"
PARSE_ERROR_CODE = "PARSE_ERROR"
UNKNOWN_CODE = "UNKNOWN"

# Gateway error codes -> reason shown to the operator
ERROR_MAP = {
    "000": "Gui tin thanh cong",
    "011": "Noi dung khong dung mau CSKH da dang ky",
    "019": "So dien thoai khong hop le",
    "904": "Brandname khong hop le hoac chua duoc cap quyen",
    "014": "Tai khoan het so du",
    "100": "Token khong hop le hoac het han",
    "103": "Tai khoan khong co quyen gui CSKH",
    "NETWORK": "Loi mang hoac ket noi API",
}
GENERIC_ERROR_MESSAGE = "Loi khong xac dinh"

REQUEST_ID_NONE = "none"
REQUEST_ID_TIMESTAMP = "timestamp"


def split_lines(text: str) -> List[str]:
    """Split a batch into its non-blank lines"""
    lines = (line.rstrip("\r") for line in (text or "").split("\n"))
    return [line for line in lines if line.strip()]


def error_message_for(code: str, fallback: Optional[str] = None) -> str:
    return ERROR_MAP.get(code) or fallback or GENERIC_ERROR_MESSAGE


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SmsDispatcher:
    """Turns operator batches into gateway calls and send-log entries"""

    def __init__(
        self,
        parser: LineParser,
        gateway: BrandSmsClient,
        log_store: LogStore,
        scheduler: Optional[FixedIntervalScheduler] = None,
        template: str = settings.MESSAGE_TEMPLATE,
        hotline: str = settings.HOTLINE,
        request_id_mode: str = settings.REQUEST_ID_MODE,
        clock: Optional[Callable[[], str]] = None,
    ):
        if request_id_mode not in (REQUEST_ID_NONE, REQUEST_ID_TIMESTAMP):
            raise ValueError(f"Unknown request id mode: {request_id_mode!r}")
        self.parser = parser
        self.gateway = gateway
        self.log_store = log_store
        self.scheduler = scheduler or FixedIntervalScheduler()
        self.template = template
        self.hotline = hotline
        self.request_id_mode = request_id_mode
        self._clock = clock or _now_iso

    def prepare(self, line: str) -> Tuple[TripRecord, str, str]:
        """Parse and render one line: (record, message, international phone). Raises ParseError."""
        record = self.parser.parse(line)
        message = compose_message(record, variant=self.template, hotline=self.hotline)
        return record, message, normalize_phone(record.phone)

    def preview(self, text: str) -> List[PreviewItem]:
        """
        Render every line of a batch without sending anything.

        The first line that fails to parse rejects the whole preview
        (ParseError propagates to the caller).
        """
        items = []
        for index, line in enumerate(split_lines(text), start=1):
            _, message, phone = self.prepare(line)
            items.append(PreviewItem(index=index, phone=phone, message=message))
        return items

    def _request_id(self, line_index: int) -> str:
        if self.request_id_mode == REQUEST_ID_TIMESTAMP:
            return f"{int(time.time() * 1000)}_{line_index}"
        return ""

    async def send_bulk(self, text: str) -> List[DispatchResult]:
        """Send every line of a batch, in order, and return one result per line"""
        lines = split_lines(text)
        logger.info(f"Starting bulk send: {len(lines)} line(s)")

        results = []
        for index, line in enumerate(lines, start=1):
            result = await self.dispatch_line(index, line)
            await asyncio.to_thread(self._save, result)
            results.append(result)
            await self.scheduler.wait()

        sent = sum(1 for r in results if r.status == DispatchStatus.SUCCESS)
        logger.info(f"Bulk send finished: {sent}/{len(results)} sent")
        return results

    def _save(self, result: DispatchResult) -> None:
        try:
            self.log_store.append(result)
        except Exception as e:
            logger.error(f"Failed to write send log entry for line {result.line_index}: {e}")

    async def dispatch_line(self, index: int, line: str) -> DispatchResult:
        """Process one line and classify its outcome. Never raises."""
        timestamp = self._clock()

        try:
            record, message, phone = self.prepare(line)
        except ParseError as e:
            logger.warning(f"Line {index}: parse error: {e.reason}")
            return DispatchResult(
                line_index=index,
                timestamp=timestamp,
                phone=self.parser.best_effort_phone(line),
                message="",
                status=DispatchStatus.FAILED,
                error_type=ErrorType.PARSE_ERROR,
                error_code=PARSE_ERROR_CODE,
                error_message=e.reason,
            )
        except Exception as e:
            logger.error(f"Line {index}: unexpected error while preparing message: {type(e).__name__}: {e}")
            return self._unknown(index, timestamp, self.parser.best_effort_phone(line), "")

        try:
            body = await self.gateway.send_sms(phone, message, request_id=self._request_id(index))
            return self._classify_response(index, timestamp, record, message, body)
        except GatewayUnavailableError as e:
            logger.warning(f"Line {index}: gateway unreachable: {e}")
            return DispatchResult(
                line_index=index,
                timestamp=timestamp,
                phone=record.phone,
                message=message,
                status=DispatchStatus.FAILED,
                error_type=ErrorType.NETWORK_ERROR,
                error_code=NETWORK_CODE,
                error_message=error_message_for(NETWORK_CODE),
            )
        except GatewayRejectedError as e:
            return self._classify_rejection(index, timestamp, record, message, e)
        except GatewayResponseError as e:
            logger.warning(f"Line {index}: {e}")
            return self._unknown(index, timestamp, record.phone, message)
        except Exception as e:
            logger.error(f"Line {index}: unexpected error during send: {type(e).__name__}: {e}")
            return self._unknown(index, timestamp, record.phone, message)

    def _classify_response(
        self,
        index: int,
        timestamp: str,
        record: TripRecord,
        message: str,
        body: Dict[str, Any],
    ) -> DispatchResult:
        code = body.get("errorCode")
        code = "" if code is None else str(code)

        if code == SUCCESS_CODE:
            return DispatchResult(
                line_index=index,
                timestamp=timestamp,
                phone=record.phone,
                message=message,
                status=DispatchStatus.SUCCESS,
                error_code=code,
                error_message=error_message_for(code),
            )

        if not code:
            logger.warning(f"Line {index}: gateway response without errorCode: {body}")
            return self._unknown(index, timestamp, record.phone, message)

        logger.warning(f"Line {index}: gateway refused message, errorCode={code}")
        return DispatchResult(
            line_index=index,
            timestamp=timestamp,
            phone=record.phone,
            message=message,
            status=DispatchStatus.FAILED,
            error_type=ErrorType.API_ERROR,
            error_code=code,
            error_message=error_message_for(code, body.get("errorMessage")),
        )

    def _classify_rejection(
        self,
        index: int,
        timestamp: str,
        record: TripRecord,
        message: str,
        error: GatewayRejectedError,
    ) -> DispatchResult:
        payload = error.payload
        code = payload.get("errorCode")
        code = str(code) if code not in (None, "") else str(error.status_code)

        # The error payload may echo the request; the phone it carries is optional
        phone = record.phone
        sent = payload.get("sendMessage")
        if isinstance(sent, dict) and sent.get("to"):
            phone = str(sent["to"])

        gateway_message = payload.get("errorMessage")
        if not isinstance(gateway_message, str):
            gateway_message = None

        logger.warning(f"Line {index}: gateway rejected request (HTTP {error.status_code}), errorCode={code}")
        return DispatchResult(
            line_index=index,
            timestamp=timestamp,
            phone=phone,
            message=message,
            status=DispatchStatus.FAILED,
            error_type=ErrorType.API_ERROR,
            error_code=code,
            error_message=error_message_for(code, gateway_message),
        )

    @staticmethod
    def _unknown(index: int, timestamp: str, phone: str, message: str) -> DispatchResult:
        return DispatchResult(
            line_index=index,
            timestamp=timestamp,
            phone=phone,
            message=message,
            status=DispatchStatus.FAILED,
            error_type=ErrorType.UNKNOWN,
            error_code=UNKNOWN_CODE,
            error_message=GENERIC_ERROR_MESSAGE,
        )


def build_dispatcher() -> SmsDispatcher:
    """Wire a dispatcher from the application settings"""
    from shuttle_sms.database.log_store import get_log_store
    from shuttle_sms.services.line_parser import get_line_parser

    return SmsDispatcher(
        parser=get_line_parser(settings.LINE_PARSER, settings.COLUMN_SEPARATOR),
        gateway=BrandSmsClient(),
        log_store=get_log_store(settings.LOG_BACKEND),
        scheduler=FixedIntervalScheduler(settings.SEND_INTERVAL_SEC, settings.SEND_JITTER_SEC),
        template=settings.MESSAGE_TEMPLATE,
        hotline=settings.HOTLINE,
        request_id_mode=settings.REQUEST_ID_MODE,
    )
