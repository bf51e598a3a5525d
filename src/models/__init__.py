from src.models.partner import PartnerCreate, PartnerRead, PartnerStatus, PartnerSubmission
from src.models.registration import (
    GroupType,
    Registration,
    RegistrationCreate,
    RegistrationRead,
    RegistrationStatus,
)
from src.models.stats import CountryCount, PageCount, StatsSnapshot, VisitStats
from src.models.visit import Visit, VisitCreate, VisitRead

__all__ = [
    "Registration",
    "RegistrationCreate",
    "RegistrationRead",
    "RegistrationStatus",
    "GroupType",
    "PartnerSubmission",
    "PartnerCreate",
    "PartnerRead",
    "PartnerStatus",
    "Visit",
    "VisitCreate",
    "VisitRead",
    "CountryCount",
    "PageCount",
    "StatsSnapshot",
    "VisitStats",
]
