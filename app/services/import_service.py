import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from sqlalchemy.orm import Session

from app.models.product import Product
from app.schemas.product import SkippedProduct
from app.services import spreadsheet
from app.services.product_service import bulk_insert_products, existing_item_codes

logger = logging.getLogger(__name__)

# field -> (canonical column, human-readable header)
COLUMN_ALIASES = {
    "item_code": ("itemCode", "Item Code"),
    "item_description": ("itemDescription", "Item Description"),
    "unit": ("unit", "Unit"),
    "mrp": ("mrp", "MRP"),
    "dp": ("dp", "DP"),
    "nlc": ("nlc", "NLC"),
    "percentage": ("percentage", "Percentage"),
}

# checked in this order, first failure wins
NUMERIC_CHECKS = (
    ("mrp", "Invalid MRP value", None),
    ("dp", "Invalid DP value", None),
    ("nlc", "Invalid NLC value", None),
    ("percentage", "Invalid Percentage value (must be between 0 and 100)", 100.0),
)

DUPLICATE_IN_FILE = "Duplicate in Excel file"
ALREADY_IN_STORE = "Already exists in database"


class EmptySpreadsheetError(ValueError):
    def __init__(self):
        super().__init__("Excel file is empty")


class ImportValidationError(ValueError):
    """Every row failed validation; nothing was inserted."""

    def __init__(self, errors: List[str]):
        super().__init__("Validation errors in Excel file")
        self.errors = errors


@dataclass
class ReconcileResult:
    to_insert: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[SkippedProduct] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ImportReport:
    inserted: List[Product]
    skipped: List[SkippedProduct]
    errors: List[str]
    failed_keys: List[str] = field(default_factory=list)


# --------------------------
# CELL HELPERS
# --------------------------
def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def resolve_column(row: Mapping[str, Any], field_name: str) -> Any:
    """Cell for field_name under its canonical column, else its header alias."""
    canonical, alias = COLUMN_ALIASES[field_name]
    value = row.get(canonical)
    if _is_blank(value):
        value = row.get(alias)
    return None if _is_blank(value) else value


def as_text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    # spreadsheet engines hand integral codes back as 1001.0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def as_number(value: Any) -> Optional[float]:
    """
    Numeric cell value; absent cells count as 0.
    Returns None when the value is not a finite number.
    """
    if _is_blank(value):
        return 0.0
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def item_code_of(row: Mapping[str, Any]) -> Optional[str]:
    return as_text(resolve_column(row, "item_code"))


# --------------------------
# RECONCILE
# --------------------------
def _validate_numbers(row: Mapping[str, Any], row_number: int, product: Dict[str, Any]) -> Optional[str]:
    for field_name, message, upper in NUMERIC_CHECKS:
        number = as_number(resolve_column(row, field_name))
        if number is None or number < 0 or (upper is not None and number > upper):
            return f"Row {row_number}: {message}"
        product[field_name] = number
    return None


def reconcile_rows(rows: Iterable[Mapping[str, Any]], stored_codes: Set[str]) -> ReconcileResult:
    """
    Classify every row as accepted, skipped or errored.

    Row numbers in error messages are 1-based data rows. A code only enters
    the seen-set once its row is accepted, so an invalid first occurrence
    does not shadow a valid later one.
    """
    result = ReconcileResult()
    seen: Set[str] = set()

    for index, row in enumerate(rows):
        row_number = index + 1
        item_code = item_code_of(row)

        if not item_code:
            result.errors.append(f"Row {row_number}: Item Code is required")
            continue

        if item_code in seen:
            result.skipped.append(SkippedProduct(item_code=item_code, reason=DUPLICATE_IN_FILE))
            continue

        if item_code in stored_codes:
            result.skipped.append(SkippedProduct(item_code=item_code, reason=ALREADY_IN_STORE))
            continue

        product = {
            "item_code": item_code,
            "item_description": as_text(resolve_column(row, "item_description")),
            "unit": as_text(resolve_column(row, "unit")),
        }
        error = _validate_numbers(row, row_number, product)
        if error:
            result.errors.append(error)
            continue

        seen.add(item_code)
        result.to_insert.append(product)

    return result


# --------------------------
# IMPORT
# --------------------------
def import_rows(db: Session, rows: List[Mapping[str, Any]]) -> ImportReport:
    if not rows:
        raise EmptySpreadsheetError()

    stored_codes = existing_item_codes(db, (item_code_of(row) for row in rows))
    result = reconcile_rows(rows, stored_codes)

    if result.errors and not result.to_insert:
        raise ImportValidationError(result.errors)

    insert = bulk_insert_products(db, result.to_insert)
    if insert.failed_keys:
        logger.warning("Not inserted after validation: %s", ", ".join(map(str, insert.failed_keys)))

    logger.info(
        "Import finished: %d rows, %d inserted, %d skipped, %d errors",
        len(rows), len(insert.inserted), len(result.skipped), len(result.errors),
    )
    return ImportReport(
        inserted=insert.inserted,
        skipped=result.skipped,
        errors=result.errors,
        failed_keys=insert.failed_keys,
    )


def import_products_from_file(db: Session, file_path: str) -> ImportReport:
    return import_rows(db, spreadsheet.read_rows(file_path))
