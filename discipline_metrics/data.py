from __future__ import annotations

import asyncio
import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from discipline_metrics.models import Row

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_FILE_NAME = "Updated_DESEMA_Discipline_Calculations.csv"

YEAR_COLUMN = "Year"
GROUP_COLUMN = "Student Group"
# The published file carries a leading space in this header.
PERCENT_COLUMN = " Percent of Students Disciplined"
REQUIRED_COLUMNS = (YEAR_COLUMN, GROUP_COLUMN, PERCENT_COLUMN)

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0


class ParseError(ValueError):
    """Raised when the discipline file cannot be turned into rows."""

    def __init__(self, message: str, *, row: Optional[int] = None) -> None:
        super().__init__(message)
        self.row = row


def default_data_path() -> Path:
    return DATA_DIR / DEFAULT_FILE_NAME


def file_signature(path: Path) -> Tuple[str, float]:
    return (str(path), path.stat().st_mtime)


def read_frame(raw_text: str) -> pd.DataFrame:
    """Read CSV text into an all-string frame, keeping cell text as-is."""
    if raw_text.startswith("\ufeff"):
        raw_text = raw_text[1:]
    if "\x00" in raw_text:
        # The C parser truncates a cell at NUL, which would alter keys.
        raise ParseError("NUL byte in input")
    try:
        frame = pd.read_csv(
            io.StringIO(raw_text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="error",
        )
    except EmptyDataError as exc:
        raise ParseError("No header row found in discipline data.") from exc
    except ParserError as exc:
        raise ParseError(f"Malformed delimited text: {exc}") from exc
    if len(frame) and not isinstance(frame.index, pd.RangeIndex):
        # pandas turns a surplus leading field into an implicit index column.
        raise ParseError("Data rows have more fields than the header row.")
    # Short lines are padded with NaN by pandas.
    return frame.fillna("")


def drop_blank_rows(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return frame
    blank = (frame == "").all(axis=1)
    if blank.any():
        logger.debug("Skipping %d blank rows", int(blank.sum()))
    return frame.loc[~blank]


def coerce_percent(frame: pd.DataFrame) -> pd.Series:
    raw = frame[PERCENT_COLUMN]
    values = pd.to_numeric(raw, errors="coerce").astype(float)
    invalid = values.isna() | ~np.isfinite(values) | (values < PERCENT_MIN) | (values > PERCENT_MAX)
    if invalid.any():
        # Index labels are 0-based positions in the data section of the file.
        first = invalid.idxmax()
        row_number = int(first) + 1
        raise ParseError(
            f"Row {row_number}: {PERCENT_COLUMN.strip()!r} value {raw.loc[first]!r} "
            f"is not a number between {PERCENT_MIN:g} and {PERCENT_MAX:g}.",
            row=row_number,
        )
    return values


def parse_rows(raw_text: str) -> List[Row]:
    """Parse discipline CSV text into rows, binding columns by exact header name."""
    frame = read_frame(raw_text)
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ParseError(f"Missing required columns: {', '.join(repr(c) for c in missing)}")

    frame = drop_blank_rows(frame)
    if frame.empty:
        return []
    percents = coerce_percent(frame)
    return [
        Row(year=year, student_group=group, percent_disciplined=float(percent))
        for year, group, percent in zip(frame[YEAR_COLUMN], frame[GROUP_COLUMN], percents)
    ]


def _read_text(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def read_rows(path: Path) -> List[Row]:
    rows = parse_rows(_read_text(path))
    logger.info("Loaded %d discipline rows from %s", len(rows), Path(path).name)
    return rows


async def load_rows(path: Path) -> List[Row]:
    """Read and parse the file; the read runs off the event loop."""
    text = await asyncio.to_thread(_read_text, path)
    rows = parse_rows(text)
    logger.info("Loaded %d discipline rows from %s", len(rows), Path(path).name)
    return rows


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def available_years(rows: Sequence[Row]) -> List[str]:
    # School-year labels ("2021-22") sort chronologically as text.
    return sorted(_distinct(r.year for r in rows))


def available_groups(rows: Sequence[Row]) -> List[str]:
    return _distinct(r.student_group for r in rows)


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dataset_cached(file_sig: Tuple[str, float]) -> Dict[str, object]:
    path = Path(file_sig[0])
    rows = tuple(read_rows(path))
    return {
        "file": path.name,
        "rows": rows,
        "years": tuple(available_years(rows)),
        "groups": tuple(available_groups(rows)),
    }


def load_dataset(path: Optional[Path] = None) -> Dict[str, object]:
    path = Path(path) if path is not None else default_data_path()
    if not path.exists():
        logger.warning("Discipline data file not found: %s", path)
        return {"file": None, "rows": (), "years": [], "groups": []}
    cached = _load_dataset_cached(file_signature(path))
    # Fresh lists per caller; the cached entry stays untouched.
    return {**cached, "years": list(cached["years"]), "groups": list(cached["groups"])}
