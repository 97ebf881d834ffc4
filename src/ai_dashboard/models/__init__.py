from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

# A row maps column name -> scalar (str, int, float, ISO date string or None).
Row = Dict[str, Any]


class Dataset(BaseModel):
    """
    The active uploaded table.
    Rows keep the file's order; the first row's keys define the schema.
    """
    model_config = ConfigDict(frozen=True)

    rows: List[Row]
    filename: str

    @property
    def columns(self) -> List[str]:
        return list(self.rows[0].keys()) if self.rows else []



class FilterKind(str, Enum):
    REGION = "region"
    CATEGORY = "category"
    PRODUCT = "product"
    TOP = "top"
    QUARTER = "quarter"


class FilterDirective(BaseModel):
    """One (kind, value) pair classified from a chat message."""
    model_config = ConfigDict(frozen=True)

    kind: FilterKind
    value: str

    @property
    def label(self) -> str:
        return f"{self.kind.value}: {self.value}"


class FilteredView(BaseModel):
    """
    The rows the dashboard should display.
    When `active` is False the rows are the full dataset and the label is "none".
    """
    rows: List[Row]
    directive: Optional[FilterDirective] = None
    active: bool = False
    matched_rows: int = 0

    @property
    def context_label(self) -> str:
        if self.active and self.directive is not None:
            return self.directive.label
        return "none"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    PAYMENT_REQUIRED = "payment_required"
    UNAVAILABLE = "unavailable"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class AnalystReply(BaseModel):
    """Outcome of one gateway call: either `text` or `error_kind` is set."""
    text: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    status_code: int = 200
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class ChatRequest(BaseModel):
    """Inbound chat payload: {message, fileData?, fileName?}."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    file_data: Optional[List[Row]] = Field(None, alias="fileData")
    file_name: Optional[str] = Field(None, alias="fileName")

    def dataset(self) -> Optional[Dataset]:
        if not self.file_data:
            return None
        return Dataset(rows=self.file_data, filename=self.file_name or "uploaded file")


class SummaryMetrics(BaseModel):
    column: str
    total: float
    average: float
    maximum: float
    minimum: float
    count: int


class TrendInsight(BaseModel):
    metric: str
    direction: str  # 'up' or 'down'
    percent_change: Optional[float]
    average: float
    peak: float
    lowest: float
    anomalies: int
    total_records: int
    recommendation: str
    suggested_question: str
