"""SQLAlchemy Core table for vendor evaluation records.

Nothing here names a column by hand: the column list, the table, statement
parameters and row conversion are all derived from
:class:`vendorbank.schemas.vendor.VendorRecord`, so the table DDL, the write
path and the read path cannot drift apart.

Stored columns carry the camelCase field aliases (``vendorName``,
``tenderNumber``, ...), the same names the browser-era data bank used, so its
saved databases open without conversion.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import Column, MetaData, Table, Text

from vendorbank.schemas.vendor import VendorRecord

VENDOR_COLUMNS: tuple[str, ...] = tuple(
    field.alias or name for name, field in VendorRecord.model_fields.items()
)

KEY_COLUMN = VENDOR_COLUMNS[0]

metadata = MetaData()

vendors = Table(
    "vendors",
    metadata,
    *(
        Column(name, Text, primary_key=(name == KEY_COLUMN), nullable=(name != KEY_COLUMN))
        for name in VENDOR_COLUMNS
    ),
)

key_column = vendors.c[KEY_COLUMN]

NON_KEY_COLUMNS: tuple[str, ...] = tuple(c for c in VENDOR_COLUMNS if c != KEY_COLUMN)


def record_to_params(record: VendorRecord) -> dict[str, str | None]:
    """Bind every column; absent fields become NULL, never a missing column."""
    data = record.model_dump(by_alias=True)
    return {name: _as_text(data.get(name)) for name in VENDOR_COLUMNS}


def row_to_record(row: Mapping[str, Any]) -> VendorRecord:
    return VendorRecord.model_validate({name: row[name] for name in VENDOR_COLUMNS})


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
