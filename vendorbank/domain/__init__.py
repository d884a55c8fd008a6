"""Domain package — table definitions for the embedded engine.

Folder intent:
  vendor.py  — the ``vendors`` table, derived from the VendorRecord schema
"""

from vendorbank.domain.vendor import (
    KEY_COLUMN,
    NON_KEY_COLUMNS,
    VENDOR_COLUMNS,
    key_column,
    metadata,
    record_to_params,
    row_to_record,
    vendors,
)

__all__ = [
    "KEY_COLUMN",
    "NON_KEY_COLUMNS",
    "VENDOR_COLUMNS",
    "key_column",
    "metadata",
    "record_to_params",
    "row_to_record",
    "vendors",
]
