"""Vendor evaluation record schema.

``VendorRecord`` is the one place the stored fields are declared. The table
definition, statement parameters and row conversion in
:mod:`vendorbank.domain.vendor` are all derived from its ``model_fields``;
add or remove a field here and nowhere else.
"""


from pydantic import Field

from vendorbank.schemas.common import CamelModel

class VendorRecord(CamelModel):
    # Identity (primary key)
    vendor_name: str

    # Tender metadata
    tender_number: str | None = None
    tender_title: str | None = None
    date_of_financial_evaluation: str | None = None
    evaluation_validity_date: str | None = None
    evaluator_name_department: str | None = None
    overall_result: str | None = None

    # Quantitative
    quantitative_score: str | None = None
    quantitative_band: str | None = None
    quantitative_risk_category: str | None = None

    # Altman Z
    altman_z_score: str | None = None
    altman_z_band: str | None = None
    altman_z_risk_category: str | None = None

    # Qualitative
    qualitative_score: str | None = None
    qualitative_band: str | None = None
    qualitative_risk_category: str | None = None

    # Narrative
    overall_financial_evaluation_result: str | None = None

    model_config = {
        # Forms submit scores as numbers; storage is text only.
        "coerce_numbers_to_str": True,
        "extra": "ignore",
    }

class VendorRenameRequest(CamelModel):
    new_vendor_name: str = Field(..., min_length=1)

class VendorSaveResult(CamelModel):
    record: VendorRecord
    created: bool

class StorageStatus(CamelModel):
    backend: str
    state: str
    dirty: bool
