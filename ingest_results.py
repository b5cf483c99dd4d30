#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Read an uploaded results workbook and turn it into a :class:`ParsedData`.

Only the first sheet is consulted. Structural problems (no sheets, no rows,
missing required columns, no usable students) abort the whole import with a
:class:`result_records.ResultIngestError`; individual malformed rows are
skipped and reported through ``ParsedData.issues``.
"""

from __future__ import annotations

import io
import json
import logging
import os
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pandas as pd

from normalize_results import DEFAULT_SEMESTER, PASS_MARK, normalize_rows
from result_records import (
    EmptyData,
    EmptyWorkbook,
    InvalidConfig,
    LibraryUnavailable,
    NoValidRecords,
    ParsedData,
    UnreadableWorkbook,
)

logger = logging.getLogger(__name__)

HERE = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_PATH = os.path.join(HERE, "config.json")

SpreadsheetReader = Callable[[bytes], List[Dict[str, object]]]


def load_config(path: Optional[str] = None) -> Dict:
    """Load the JSON configuration, returning an empty mapping when absent."""

    path = path or DEFAULT_CONFIG_PATH
    if not os.path.isfile(path):
        logger.debug("No config file at %s, using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidConfig(f"Config file {path} is not valid JSON: {exc}") from exc


def read_first_sheet(data: bytes) -> List[Dict[str, object]]:
    """Decode *data* with pandas/openpyxl and return the first sheet's rows.

    Every cell is read as text and empty cells come back as ``""``.
    """

    try:
        xl = pd.ExcelFile(io.BytesIO(data), engine="openpyxl")
    except ImportError as exc:
        raise LibraryUnavailable(
            "Excel library not available. Please install openpyxl and try again."
        ) from exc
    except Exception as exc:
        raise UnreadableWorkbook(f"Failed to read file: {exc}") from exc

    with xl:
        if not xl.sheet_names:
            raise EmptyWorkbook("Excel file contains no sheets")

        sheet = xl.sheet_names[0]
        try:
            df = xl.parse(sheet, dtype=str, keep_default_na=False).fillna("")
        except Exception as exc:
            raise UnreadableWorkbook(f"Failed to read sheet {sheet!r}: {exc}") from exc

    df.columns = [str(c) for c in df.columns]
    logger.debug("Read sheet %r: %d rows x %d columns", sheet, len(df.index), len(df.columns))
    return df.to_dict(orient="records")


def ingest_workbook(
    data: bytes,
    *,
    reader: Optional[SpreadsheetReader] = None,
    config: Optional[Dict] = None,
) -> ParsedData:
    """Return the unified dataset for the workbook *data*, or raise."""

    cfg = config or {}
    reader = reader or read_first_sheet

    if not data:
        raise UnreadableWorkbook("File data is empty")

    rows = reader(data)
    if not rows:
        raise EmptyData("Excel file is empty or has no data rows")

    try:
        pass_mark = float(cfg.get("pass_mark", PASS_MARK))
    except (TypeError, ValueError) as exc:
        raise InvalidConfig(f"Invalid pass_mark in config: {cfg.get('pass_mark')!r}") from exc

    parsed = normalize_rows(
        rows,
        pass_mark=pass_mark,
        default_semester=str(cfg.get("default_semester", DEFAULT_SEMESTER)),
    )
    if not parsed.students:
        raise NoValidRecords(
            "No valid student records found in the Excel file. Please check the file format."
        )

    logger.info(
        "Loaded %d student records across %d semesters (%d rows skipped)",
        len(parsed.students),
        len(parsed.semesters),
        len(parsed.issues),
    )
    return parsed


def ingest_path(path: Union[str, Path], **kwargs) -> ParsedData:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results workbook not found: {path}")
    return ingest_workbook(path.read_bytes(), **kwargs)


def submit_ingest(executor: Executor, data: bytes, **kwargs) -> "Future[ParsedData]":
    """Run :func:`ingest_workbook` on *executor* so the caller is not blocked.

    The returned future resolves once, to either the dataset or the
    ingestion error.
    """

    return executor.submit(ingest_workbook, data, **kwargs)
