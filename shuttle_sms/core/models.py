"""
Records shared by the dispatcher, the send log and the API.
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DispatchStatus(str, enum.Enum):
    """Outcome of one send attempt"""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ErrorType(str, enum.Enum):
    """Failure classification of one send attempt"""
    API_ERROR = "API_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class DispatchResult(BaseModel):
    """
    Outcome of one input line of a batch.

    Written once to the send log and returned in the batch response.
    Serialized with camelCase keys (lineIndex, errorType, ...).
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )

    line_index: int = Field(..., ge=1, description="1-based position in the batch")
    timestamp: str = Field(..., description="ISO-8601 capture time")
    phone: str = ""
    message: str = Field("", description="Rendered text, empty on parse failure")
    status: DispatchStatus
    error_type: Optional[ErrorType] = None
    error_code: str = ""
    error_message: str = ""

    def to_log_dict(self) -> dict:
        """JSON-ready dict with camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)


class PreviewItem(BaseModel):
    """One line of a preview: what would be sent, and to whom"""
    index: int
    phone: str
    message: str
