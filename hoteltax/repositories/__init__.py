from hoteltax.repositories.api_key_repository import ApiKeyRepository
from hoteltax.repositories.audit_log_repository import AuditLogRepository
from hoteltax.repositories.client_repository import ClientRepository
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.repositories.idempotency_repository import IdempotencyRepository
from hoteltax.repositories.stay_repository import StayRepository
from hoteltax.repositories.tax_calculation_repository import TaxCalculationRepository
from hoteltax.repositories.tax_configuration_repository import TaxConfigurationRepository
from hoteltax.repositories.tax_exemption_repository import TaxExemptionRepository

__all__ = [
    "ApiKeyRepository",
    "AuditLogRepository",
    "ClientRepository",
    "EstablishmentRepository",
    "IdempotencyRepository",
    "StayRepository",
    "TaxCalculationRepository",
    "TaxConfigurationRepository",
    "TaxExemptionRepository",
]
