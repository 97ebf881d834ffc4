"""
analyst_gateway.py
─────────────────────────────────────────────────────────────────────────────
Forwards a chat message plus a bounded description of the uploaded dataset
to the hosted chat-completion model and normalizes the outcome.

Retry policy
  503                      → retried, backoff min(base * 2^(attempt-1), max) ms
  connection / bad body    → retried on the same schedule, re-raised at the end
  429 / 402 / other status → classified once, returned without retrying
─────────────────────────────────────────────────────────────────────────────
"""

import json
import time
from typing import Any, Callable, Dict, List, Optional

import groq
from groq import Groq

from ai_dashboard.config import settings
from ai_dashboard.core.columns import distinct_values, numeric_columns, resolve_column
from ai_dashboard.models import AnalystReply, Dataset, ErrorKind, FilterKind
from ai_dashboard.utils.exceptions import AnalystUnavailableError, ConfigurationError
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)

ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED:     "Rate limit exceeded. Please wait a moment and try again.",
    ErrorKind.PAYMENT_REQUIRED: "AI service requires payment. Please add credits to your workspace.",
    ErrorKind.UNAVAILABLE:      "AI service is temporarily unavailable. Please try again in a moment.",
    ErrorKind.CONFIGURATION:    "The AI service is not configured. Please provide an API key.",
    ErrorKind.UNKNOWN:          "Failed to get AI response. Please try again.",
}

_STATUS_KINDS = {
    429: ErrorKind.RATE_LIMITED,
    402: ErrorKind.PAYMENT_REQUIRED,
    503: ErrorKind.UNAVAILABLE,
}

_KIND_STATUS = {
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.PAYMENT_REQUIRED: 402,
    ErrorKind.UNAVAILABLE: 503,
}


def status_for(kind: ErrorKind) -> int:
    """HTTP status the API boundary reports for an error kind."""
    return _KIND_STATUS.get(kind, 500)


def _get_client() -> Groq:
    """Build the client lazily so a key entered in the UI takes effect."""
    if not settings.GROQ_API_KEY:
        raise ConfigurationError()
    return Groq(
        api_key=settings.GROQ_API_KEY,
        base_url=settings.GROQ_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        max_retries=0,  # retries are owned by ask_analyst()
    )


def backoff_delay_ms(attempt: int) -> int:
    """Wait before the next attempt; `attempt` counts from 1."""
    return min(settings.BACKOFF_BASE_MS * 2 ** (attempt - 1), settings.BACKOFF_MAX_MS)


# ---------------------------------------------------------------------------
# PROMPTS
# ---------------------------------------------------------------------------

PERSONA = """You are an advanced AI Business Intelligence Analyst specializing in sales and marketing data analysis for consumer brands.

Your core capabilities:
1. DATA ANALYSIS: Analyze sales data, identify trends, patterns, anomalies, and outliers
2. STRATEGIC INSIGHTS: Provide actionable business recommendations backed by data
3. PERFORMANCE METRICS: Calculate and explain KPIs like growth rates, conversion rates, and regional performance
4. PREDICTIVE INSIGHTS: Suggest strategies to improve underperforming areas
5. CONVERSATIONAL: Respond naturally to management queries with clarity and precision

REGIONAL ANALYSIS:
When asked about a specific region (West, South, East, North, Central, etc.):
- Use ONLY that region's rows for totals, revenue and units sold
- Compare the region against overall averages
- Identify top products/categories within that region
- Provide region-specific recommendations

Always structure responses with:
- A clear answer to the question with specific numbers
- Supporting data points and metrics (percentages, totals, averages)
- Comparison to other regions or overall performance
- Actionable recommendations for improvement"""


def _to_json(rows: List[Dict[str, Any]]) -> str:
    return json.dumps(rows, indent=2, default=str, ensure_ascii=False)


def build_dataset_context(dataset: Dataset) -> str:
    """
    Structural summary of the dataset plus a deterministic excerpt
    (the first CONTEXT_MAX_ROWS rows).
    """
    rows = dataset.rows
    columns = dataset.columns
    numeric = numeric_columns(rows, first_non_null=True)

    region_info = ""
    region_col = resolve_column(columns, FilterKind.REGION)
    if region_col:
        regions = ", ".join(str(v) for v in distinct_values(rows, region_col))
        region_info = f"\nREGION COLUMN IDENTIFIED: \"{region_col}\"\nAVAILABLE REGIONS: {regions}"

    sample = rows[:settings.CONTEXT_SAMPLE_ROWS]
    excerpt = rows[:settings.CONTEXT_MAX_ROWS]

    return (
        f"CURRENT DATASET LOADED:\n"
        f"File: {dataset.filename or 'uploaded file'}\n"
        f"Total Records: {len(rows)}\n"
        f"Columns: {', '.join(columns)}\n"
        f"Numeric Columns (for calculations): {', '.join(numeric)}"
        f"{region_info}\n\n"
        f"Sample Data (first {len(sample)} rows):\n{_to_json(sample)}\n\n"
        f"DATASET EXCERPT (first {len(excerpt)} of {len(rows)} rows):\n{_to_json(excerpt)}\n\n"
        f"IMPORTANT ANALYSIS INSTRUCTIONS:\n"
        f"- When asked about a specific region, provide metrics ONLY for that region\n"
        f"- Give specific numbers (e.g. \"West region total sales: $X, which is Y% of total\")\n"
        f"- If there is no exact match, use partial matches (e.g. \"Western\" for \"West\")\n"
        f"- If the excerpt is shorter than the total record count, say that figures are based on the excerpt"
    )


def build_system_prompt(dataset: Optional[Dataset] = None) -> str:
    if dataset is None or not dataset.rows:
        return PERSONA
    return f"{PERSONA}\n\n{build_dataset_context(dataset)}"


def build_messages(message: str, dataset: Optional[Dataset] = None) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": build_system_prompt(dataset)},
        {"role": "user", "content": message},
    ]


# ---------------------------------------------------------------------------
# MAIN ENTRY POINT
# ---------------------------------------------------------------------------

def _error_reply(kind: ErrorKind) -> AnalystReply:
    return AnalystReply(error_kind=kind, status_code=status_for(kind), error=ERROR_MESSAGES[kind])


def ask_analyst(
    message: str,
    dataset: Optional[Dataset] = None,
    client: Optional[Any] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> AnalystReply:
    """
    Ask the hosted model about the dataset.

    Args:
        message: The user's literal chat message.
        dataset: Uploaded rows to describe in the system prompt, if any.
        client: Chat-completion client; a Groq client is built when omitted.
        sleep: Called with the backoff in seconds between attempts.

    Returns:
        AnalystReply with `text`, or with `error_kind` for 429/402/503/other statuses.

    Raises:
        ConfigurationError: No API key is configured.
        AnalystUnavailableError: Network or parse failures on every attempt.
    """
    if client is None:
        client = _get_client()

    messages = build_messages(message, dataset)
    max_attempts = settings.MAX_ATTEMPTS
    if dataset is not None:
        logger.info(f"Analyzing file: {dataset.filename} with {len(dataset.rows)} rows")

    last_exc: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        logger.info(f"AI API call attempt {attempt}/{max_attempts}")
        try:
            response = client.chat.completions.create(
                messages=messages,
                model=settings.DEFAULT_MODEL,
                temperature=settings.TEMPERATURE,
                max_tokens=settings.MAX_TOKENS,
            )
            text = response.choices[0].message.content
            if text is None:
                raise ValueError("Completion response contained no message content")
            logger.info("AI response generated successfully")
            return AnalystReply(text=text)

        except groq.APIStatusError as e:
            status = e.status_code
            if status == 503 and attempt < max_attempts:
                wait_ms = backoff_delay_ms(attempt)
                logger.warning(f"503 from AI service, retrying in {wait_ms}ms...")
                sleep(wait_ms / 1000)
                continue

            body = e.response.text if e.response is not None else ""
            logger.error(f"AI API error: {status} {body}")
            return _error_reply(_STATUS_KINDS.get(status, ErrorKind.UNKNOWN))

        except (groq.APIConnectionError, KeyError, IndexError, AttributeError, TypeError, ValueError) as e:
            last_exc = e
            if attempt < max_attempts:
                wait_ms = backoff_delay_ms(attempt)
                logger.warning(f"Error occurred, retrying in {wait_ms}ms: {e}")
                sleep(wait_ms / 1000)

    raise AnalystUnavailableError(
        f"AI provider error after {max_attempts} attempts: {last_exc}"
    ) from last_exc
