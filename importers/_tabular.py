"""
_tabular.py
-----------
Spreadsheet decoding for the order importer.

``read_rows`` turns an .xlsx/.xls/.csv file into a list of ``ImportRow``
objects. Cell parsing is delegated to pandas; this module only maps headers,
trims values and parses dates, quantities and prices once, at the boundary.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd

from ardenOrders.errors import ImportFileError

# Workshop headers first, English aliases second.
COLUMN_ALIASES = {
    "order_code": ("Ma_don", "order_code", "code"),
    "customer_name": ("Ten_khach", "customer_name", "customer"),
    "phone": ("SDT", "phone"),
    "order_date": ("Ngay_dat", "order_date"),
    "due_date": ("Ngay_giao", "due_date"),
    "product_name": ("San_pham", "product_name", "product"),
    "color": ("Mau", "color"),
    "size": ("Size", "size"),
    "quantity": ("So_luong", "quantity", "qty"),
    "unit_price": ("Don_gia", "unit_price", "price"),
}

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y %H:%M")


def _clean(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        # Excel hands back numeric phone numbers and codes as floats.
        value = int(value)
    return str(value).strip()


def _optional(value) -> str | None:
    return _clean(value) or None


def parse_date(value) -> date | None:
    """Accept native date cells, ``YYYY-MM-DD`` and ``DD/MM/YYYY``; anything else is None."""
    if value is None or not _clean(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _clean(value)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_quantity(value) -> int | None:
    """Positive whole numbers only; ``"2.0"`` counts as 2, ``"1.5"`` does not."""
    text = _clean(value).replace(",", "")
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    if number != number.to_integral_value() or number <= 0:
        return None
    return int(number)


def parse_money(value) -> Decimal:
    """Convert spreadsheet currency strings (``"100,000"``, ``"$5"``) into Decimal."""
    text = _clean(value)
    if not text:
        return Decimal("0.00")
    try:
        clean = text.replace("$", "").replace("₫", "").replace(",", "").strip()
        amount = Decimal(clean)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0.00")
    return amount if amount.is_finite() else Decimal("0.00")


def _pick(mapping: dict, field_name: str):
    for header in COLUMN_ALIASES[field_name]:
        if header in mapping:
            return mapping[header]
    return None


@dataclass
class ImportRow:
    """One decoded spreadsheet line. Only ``order_code`` is needed to group it."""

    order_code: str
    customer_name: str = ""
    phone: str | None = None
    order_date: date | None = None
    due_date: date | None = None
    product_name: str = ""
    color: str | None = None
    size: str | None = None
    quantity: int | None = None
    unit_price: Decimal = Decimal("0.00")
    line_number: int | None = None

    @classmethod
    def from_mapping(cls, mapping: dict, line_number: int | None = None) -> "ImportRow":
        return cls(
            order_code=_clean(_pick(mapping, "order_code")),
            customer_name=_clean(_pick(mapping, "customer_name")),
            phone=_optional(_pick(mapping, "phone")),
            order_date=parse_date(_pick(mapping, "order_date")),
            due_date=parse_date(_pick(mapping, "due_date")),
            product_name=_clean(_pick(mapping, "product_name")),
            color=_optional(_pick(mapping, "color")),
            size=_optional(_pick(mapping, "size")),
            quantity=parse_quantity(_pick(mapping, "quantity")),
            unit_price=parse_money(_pick(mapping, "unit_price")),
            line_number=line_number,
        )

    @property
    def is_valid_item(self) -> bool:
        return bool((self.product_name or "").strip()) and (self.quantity or 0) > 0


def source_for(path: Path) -> str:
    return "excel" if path.suffix.lower() in EXCEL_SUFFIXES else "csv"


def read_frame(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise ImportFileError(f"File not found: {path}")
    try:
        if source_for(path) == "excel":
            frame = pd.read_excel(path, sheet_name=0, dtype=object)
        else:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except (ValueError, OSError, ImportError, zipfile.BadZipFile, pd.errors.ParserError) as exc:
        raise ImportFileError(f"Unable to read {path.name}: {exc}") from exc
    frame.columns = [str(col).strip() for col in frame.columns]
    return frame


def read_rows(path) -> list[ImportRow]:
    """Decode the first sheet (or the CSV body) of ``path`` into ImportRows."""
    path = Path(path)
    frame = read_frame(path)
    rows = []
    # Header is spreadsheet line 1.
    for offset, record in enumerate(frame.to_dict(orient="records"), start=2):
        rows.append(ImportRow.from_mapping(record, line_number=offset))
    return rows
