"""
CSV parser for inventory uploads.

Reads the user's inventory CSV into UploadRow objects. Every column is kept
as text so UPC leading zeros survive, headers are trimmed, and fully blank
lines are skipped. Canonical fields are resolved through the alias table.
"""

from io import BytesIO
from pathlib import Path
from typing import Union
import structlog

import pandas as pd

from exceptions import CSVParseError
from models.verification import UploadRow
from utils.normalization import canonicalize_row

logger = structlog.get_logger(__name__)

# Tried in order; latin-1 accepts any byte sequence
ENCODINGS = ("utf-8-sig", "latin-1")


def _read_csv(file: Union[str, Path, BytesIO, bytes]) -> pd.DataFrame:
    if isinstance(file, bytes):
        file = BytesIO(file)

    last_error = None
    for encoding in ENCODINGS:
        if isinstance(file, BytesIO):
            file.seek(0)
        try:
            return pd.read_csv(
                file,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding=encoding,
            )
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except pd.errors.EmptyDataError as e:
            raise CSVParseError(
                message="CSV file is empty",
                details={"original_error": str(e)}
            )
        except (pd.errors.ParserError, OSError) as e:
            logger.error("csv_read_failed", error=str(e))
            raise CSVParseError(
                message="Failed to read CSV file",
                details={"original_error": str(e)}
            )

    raise CSVParseError(
        message="Unsupported CSV encoding",
        details={"original_error": str(last_error), "tried": list(ENCODINGS)}
    )


def parse_upload_csv(file: Union[str, Path, BytesIO, bytes]) -> list[UploadRow]:
    """
    Parse an inventory upload.

    Args:
        file: File path, file-like object or raw bytes

    Returns:
        UploadRows in file order, indexed from 0

    Raises:
        CSVParseError: If the file can't be read or has no header
    """
    logger.info("parsing_csv", file_type=type(file).__name__)

    df = _read_csv(file)
    df.columns = [str(column).strip() for column in df.columns]

    if not any(df.columns):
        raise CSVParseError(message="CSV file has no header row")

    rows: list[UploadRow] = []
    skipped = 0
    for record in df.to_dict(orient="records"):
        values = {column: str(value) for column, value in record.items()}
        if not any(value.strip() for value in values.values()):
            skipped += 1
            continue

        canonical, source_columns = canonicalize_row(values)
        rows.append(UploadRow(
            index=len(rows),
            values=values,
            canonical=canonical,
            source_columns=source_columns,
        ))

    logger.info(
        "csv_parsed",
        rows=len(rows),
        columns=len(df.columns),
        skipped_blank=skipped
    )
    return rows
