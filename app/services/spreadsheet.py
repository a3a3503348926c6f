import logging
import os
from typing import Any, Dict, List

import chardet
import pandas as pd

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv"}


def detect_encoding(file_path: str) -> str:
    """Detect file encoding"""
    with open(file_path, "rb") as f:
        result = chardet.detect(f.read())
    return result["encoding"] or "utf-8"


def _is_csv(file_path: str) -> bool:
    return os.path.splitext(file_path)[1].lower() in CSV_EXTENSIONS


def read_frame(file_path: str) -> pd.DataFrame:
    """
    Load the first worksheet (or the CSV) with its header row as column labels.
    Cells keep their native value; only empty cells come back as NaN, so text
    such as "NA" or "NULL" is read as written.
    """
    if os.path.getsize(file_path) == 0:
        return pd.DataFrame()

    if _is_csv(file_path):
        try:
            return pd.read_csv(
                file_path,
                dtype=str,
                encoding=detect_encoding(file_path),
                keep_default_na=False,
                na_values=[""],
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

    # engine=None lets pandas tell xlsx (openpyxl) from xls (xlrd) by content
    return pd.read_excel(
        file_path,
        sheet_name=0,
        dtype=object,
        engine=None,
        keep_default_na=False,
        na_values=[""],
    )


def read_rows(file_path: str) -> List[Dict[str, Any]]:
    """
    One mapping of column label -> cell value per data row.
    Blank cells are left out of the mapping and fully blank rows are dropped.
    """
    df = read_frame(file_path).dropna(how="all")
    rows = []
    for _, row in df.iterrows():
        rows.append({str(label).strip(): value for label, value in row.items() if pd.notna(value)})
    logger.info("Read %d rows from %s", len(rows), os.path.basename(file_path))
    return rows
