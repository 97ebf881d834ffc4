import csv
import io
import os
from datetime import date, datetime

import numpy as np
import pandas as pd

from ai_dashboard.config import settings
from ai_dashboard.models import Dataset, Row
from ai_dashboard.utils.exceptions import FileProcessingError, UnsupportedFileTypeError
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)


def check_extension(filename: str) -> str:
    """Return the lower-cased extension, rejecting anything but CSV/XLSX."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in settings.ALLOWED_EXTENSIONS:
        allowed = ", ".join(settings.ALLOWED_EXTENSIONS)
        raise UnsupportedFileTypeError(f"Unsupported file '{filename}'. Supported formats: {allowed}")
    return ext


def _native(value):
    """Convert numpy / pandas scalars to plain JSON-friendly Python values."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if np.isnan(value) else float(value)
    return value


def dataframe_to_rows(df: pd.DataFrame) -> list[Row]:
    rows = []
    for record in df.to_dict(orient="records"):
        rows.append({str(k): _native(v) for k, v in record.items()})
    return rows


def _read_csv(file_content: bytes) -> pd.DataFrame:
    # Sniff the delimiter from a small chunk (handles ';' and tab exports)
    try:
        decoded_chunk = file_content[:1024].decode('utf-8', errors='ignore')
        delimiter = csv.Sniffer().sniff(decoded_chunk, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ','

    logger.info(f"Detected delimiter: '{delimiter}'")
    return pd.read_csv(io.BytesIO(file_content), sep=delimiter, on_bad_lines='warn', encoding='utf-8-sig')


def _read_xlsx(file_content: bytes) -> pd.DataFrame:
    # First worksheet only, header row becomes the keys
    return pd.read_excel(io.BytesIO(file_content), sheet_name=0, engine="openpyxl")


def load_dataset(file_content: bytes, filename: str) -> Dataset:
    """
    Parse an uploaded CSV/XLSX file into a Dataset of row dicts.

    Raises:
        UnsupportedFileTypeError: extension is not .csv / .xlsx.
        FileProcessingError: file is too large, empty or unreadable.
    """
    logger.info(f"Starting ingestion for file: {filename}")
    ext = check_extension(filename)

    size_mb = len(file_content) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_SIZE_MB:
        raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")

    if not file_content.strip():
        raise FileProcessingError("The uploaded file contains no data.")

    try:
        df = _read_csv(file_content) if ext == ".csv" else _read_xlsx(file_content)
    except Exception as e:
        logger.error(f"Error during ingestion: {str(e)}")
        raise FileProcessingError(f"Failed to parse {filename}: {str(e)}") from e

    if df.empty:
        raise FileProcessingError("The uploaded file contains no data.")

    df.columns = [str(c).strip() for c in df.columns]
    rows = dataframe_to_rows(df)

    logger.info(f"Ingestion successful. Shape: {df.shape}")
    return Dataset(rows=rows, filename=filename)
