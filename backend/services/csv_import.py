"""Parse uploaded CSV files into joke inputs."""

import csv
import io
import logging
from typing import List

from database.repositories.base import ValidationError
from services.joke_service import JokeInput

logger = logging.getLogger(__name__)

TEXT_COLUMN = "text"
CATEGORY_COLUMN = "category"
FUNNY_RATE_COLUMN = "funnyrate"


def _parse_funny_rate(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        return 0
    return value if 0 <= value <= 5 else 0


def parse_jokes_csv(content: str) -> List[JokeInput]:
    """
    Parse CSV text with a header row into joke inputs.

    The header must name "text" and "category" columns (any case); a
    "funnyrate" column is optional and unusable values become 0. Rows with
    an empty text or category are kept so the import can count them as
    skipped.

    Raises:
        ValidationError: If required columns are missing or there are no data rows
    """
    rows = [row for row in csv.reader(io.StringIO(content)) if any(cell.strip() for cell in row)]
    if len(rows) <= 1:
        raise ValidationError("CSV file needs at least one data row (after headers).")

    headers = [header.strip().lower() for header in rows[0]]
    if TEXT_COLUMN not in headers or CATEGORY_COLUMN not in headers:
        raise ValidationError('CSV must contain "text" and "category" columns.', headers=headers)

    text_index = headers.index(TEXT_COLUMN)
    category_index = headers.index(CATEGORY_COLUMN)
    funny_rate_index = headers.index(FUNNY_RATE_COLUMN) if FUNNY_RATE_COLUMN in headers else None

    def cell(row: List[str], index: int) -> str:
        return row[index].strip() if index < len(row) else ""

    jokes = []
    for line_number, row in enumerate(rows[1:], start=2):
        text = cell(row, text_index)
        category = cell(row, category_index)
        if not text or not category:
            logger.warning(f"CSV row {line_number} is missing text or category")
        funny_rate = _parse_funny_rate(cell(row, funny_rate_index)) if funny_rate_index is not None else 0
        jokes.append(JokeInput(text=text, category=category, funny_rate=funny_rate))

    return jokes
