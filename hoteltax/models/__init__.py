from hoteltax.models.api_key import ApiKey
from hoteltax.models.audit_log import AuditLog
from hoteltax.models.client import Client, DocumentType
from hoteltax.models.establishment import Establishment, EstablishmentStatus, EstablishmentType
from hoteltax.models.idempotency_record import IdempotencyRecord
from hoteltax.models.stay import Stay, StayStatus
from hoteltax.models.tax_calculation import (
    TaxCalculation,
    TaxCalculationDetail,
    TaxCalculationExemption,
)
from hoteltax.models.tax_configuration import TaxConfiguration, TaxType
from hoteltax.models.tax_exemption import TaxExemption

__all__ = [
    "ApiKey",
    "AuditLog",
    "Client",
    "DocumentType",
    "Establishment",
    "EstablishmentStatus",
    "EstablishmentType",
    "IdempotencyRecord",
    "Stay",
    "StayStatus",
    "TaxCalculation",
    "TaxCalculationDetail",
    "TaxCalculationExemption",
    "TaxConfiguration",
    "TaxExemption",
    "TaxType",
]
