from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    LANDLORD = "landlord"
    TENANT = "tenant"
    AGENT = "agent"


class PropertyTypes(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    COMMERCIAL = "commercial"


class ListingType(str, Enum):
    RENT = "rent"
    SALE = "sale"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"
    MAINTENANCE = "maintenance"


class AgreementStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class SigningParty(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    SELF_EMPLOYED = "self-employed"
    UNEMPLOYED = "unemployed"
    RETIRED = "retired"
    STUDENT = "student"


PROPERTY_MANAGER_ROLES = {UserRole.LANDLORD, UserRole.ADMIN, UserRole.AGENT}
AGREEMENT_ISSUER_ROLES = {UserRole.LANDLORD, UserRole.ADMIN}
