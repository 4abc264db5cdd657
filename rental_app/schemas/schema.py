from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from models.enums import (
    AgreementStatus,
    EmploymentStatus,
    ListingType,
    PropertyStatus,
    PropertyTypes,
    UserRole,
)


def check_password_strength(v: str) -> str:
    errors = []
    if not re.search(r"[A-Za-z]", v):
        errors.append("letter")
    if not re.search(r"\d", v):
        errors.append("number")
    if errors:
        raise ValueError("Password must contain: " + ", ".join(errors))
    return v


http_url = TypeAdapter(HttpUrl)


def check_http_url(v: str) -> str:
    # validated as a URL but stored exactly as sent
    v = v.strip()
    try:
        http_url.validate_python(v)
    except ValueError:
        raise ValueError(f"Invalid URL: {v}")
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatchModel(BaseModel):
    # unknown keys (role, password, status, ownerId, ...) are rejected outright
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class PublicModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# --- users -----------------------------------------------------------------


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(
        ..., min_length=6, json_schema_extra={"type": "string", "format": "password"}
    )
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: UserRole = UserRole.TENANT

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, value: str):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str):
        return check_password_strength(v)


class UserLogin(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserUpdate(PatchModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class PasswordUpdate(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str):
        return check_password_strength(v)


class RoleUpdate(CamelModel):
    role: str


class UserOut(PublicModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class LoginOut(PublicModel):
    user: UserOut
    token: str


# --- properties ------------------------------------------------------------


class PropertyCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: PropertyTypes = PropertyTypes.APARTMENT
    bedrooms: int = Field(0, ge=0)
    bathrooms: float = Field(0, ge=0)
    square_feet: float = Field(0, ge=0)
    price: float = Field(..., gt=0)
    rent_or_sale: ListingType = ListingType.RENT
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)

    @field_validator("amenities")
    @classmethod
    def unique_amenities(cls, v: List[str]):
        return list(dict.fromkeys(a.strip() for a in v if a.strip()))

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: List[str]):
        return [check_http_url(url) for url in v]


class PropertyUpdate(PatchModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: Optional[PropertyTypes] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    square_feet: Optional[float] = Field(None, ge=0)
    price: Optional[float] = Field(None, gt=0)
    rent_or_sale: Optional[ListingType] = None


class PropertyStatusUpdate(CamelModel):
    status: str


class AmenityIn(CamelModel):
    amenity: str = Field(..., min_length=1)

    @field_validator("amenity")
    @classmethod
    def strip_amenity(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("Amenity cannot be empty.")
        return v


class ImageIn(CamelModel):
    image_url: str

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str):
        return check_http_url(v)


class PropertySearch(CamelModel):
    city: Optional[str] = None
    state: Optional[str] = None
    property_type: Optional[PropertyTypes] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[int] = None
    rent_or_sale: Optional[ListingType] = None
    status: Optional[PropertyStatus] = None


class PropertyOut(PublicModel):
    id: uuid.UUID
    title: str
    description: str
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: PropertyTypes
    bedrooms: int
    bathrooms: float
    square_feet: float
    price: float
    rent_or_sale: ListingType
    status: PropertyStatus
    owner_id: uuid.UUID
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PropertyStatistics(PublicModel):
    total: int
    available: int
    rented: int
    sold: int
    maintenance: int
    for_rent: int
    for_sale: int
    average_price: float


# --- rental agreements -----------------------------------------------------


class AgreementCreate(CamelModel):
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: float = Field(..., gt=0)
    security_deposit: float = Field(0, ge=0)
    terms: str = ""

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AgreementUpdate(PatchModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[float] = Field(None, gt=0)
    security_deposit: Optional[float] = Field(None, ge=0)
    terms: Optional[str] = None
    status: Optional[AgreementStatus] = None

    @field_validator("status")
    @classmethod
    def only_expiry(cls, v):
        if v is not None and v != AgreementStatus.EXPIRED:
            raise ValueError("status can only be set to 'expired' through an update")
        return v

    @model_validator(mode="after")
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class TerminateIn(CamelModel):
    reason: Optional[str] = None


class AgreementOut(PublicModel):
    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: float
    security_deposit: float
    status: AgreementStatus
    terms: str
    signed_by_tenant: bool
    signed_by_landlord: bool
    signed_at: Optional[datetime] = None
    termination_reason: Optional[str] = None
    terminated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AgreementStatistics(PublicModel):
    total: int
    draft: int
    pending: int
    active: int
    expired: int
    terminated: int
    total_monthly_revenue: float
    average_rent: float


class TotalRentOut(PublicModel):
    agreement_id: uuid.UUID
    months: int
    monthly_rent: float
    total_rent: float


# --- tenants ---------------------------------------------------------------


class ReferenceIn(CamelModel):
    name: str = Field(..., min_length=1)
    relationship: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class TenantCreate(CamelModel):
    employment_status: EmploymentStatus = EmploymentStatus.EMPLOYED
    employer: str = ""
    annual_income: float = Field(0, ge=0)
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    previous_addresses: List[str] = Field(default_factory=list)
    references: List[ReferenceIn] = Field(default_factory=list)


class TenantUpdate(PatchModel):
    employment_status: Optional[EmploymentStatus] = None
    employer: Optional[str] = None
    annual_income: Optional[float] = Field(None, ge=0)
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    previous_addresses: Optional[List[str]] = None


class TenantSearch(CamelModel):
    employment_status: Optional[EmploymentStatus] = None
    min_income: Optional[float] = None
    max_income: Optional[float] = None
    has_active_rental: Optional[bool] = None


class ReferenceOut(PublicModel):
    name: str
    relationship: str
    phone: Optional[str] = None
    email: Optional[str] = None
    added_at: datetime


class RentalHistoryOut(PublicModel):
    property_id: uuid.UUID
    agreement_id: uuid.UUID
    start_date: date
    end_date: datetime
    landlord_id: uuid.UUID
    rating: Optional[int] = None
    added_at: datetime


class TenantOut(PublicModel):
    id: uuid.UUID
    user_id: uuid.UUID
    current_property_id: Optional[uuid.UUID] = None
    current_agreement_id: Optional[uuid.UUID] = None
    employment_status: EmploymentStatus
    employer: str
    annual_income: float
    credit_score: Optional[int] = None
    previous_addresses: List[str] = Field(default_factory=list)
    references: List[ReferenceOut] = Field(default_factory=list)
    rental_history: List[RentalHistoryOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CurrentRentalOut(PublicModel):
    property: Optional[PropertyOut] = None
    agreement: Optional[AgreementOut] = None


class TenantStatistics(PublicModel):
    total: int
    with_active_rentals: int
    without_rentals: int
    employment_status: Dict[str, int]


# --- reports ---------------------------------------------------------------


class DashboardOut(PublicModel):
    total_users: int
    users_by_role: Dict[str, int]
    total_properties: int
    properties_by_status: Dict[str, int]
    properties_by_listing_type: Dict[str, int]
    total_agreements: int
    agreements_by_status: Dict[str, int]
    total_revenue: float


class UserReport(PublicModel):
    total_users: int
    users_by_role: Dict[str, List[UserOut]]
    recent_users: List[UserOut]


class PropertyReport(PublicModel):
    total_properties: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    by_listing_type: Dict[str, int]
    average_price: float
    average_rent_price: float
    average_sale_price: float


class AgreementFinancials(PublicModel):
    total_monthly_revenue: float
    average_monthly_rent: float
    total_security_deposits: float


class AgreementReport(PublicModel):
    total_agreements: int
    by_status: Dict[str, int]
    financials: AgreementFinancials
    recent_agreements: List[AgreementOut]


class TenantReport(PublicModel):
    total_tenants: int
    with_active_rentals: int
    without_rentals: int
    by_employment_status: Dict[str, int]
    average_income: float


class ActivityCounts(PublicModel):
    new_users: int
    new_properties: int
    new_agreements: int


class ActivityTotals(PublicModel):
    users: int
    properties: int
    agreements: int


class ActivitySummary(PublicModel):
    last_week: ActivityCounts
    totals: ActivityTotals


class FullReport(PublicModel):
    dashboard: DashboardOut
    users: UserReport
    properties: PropertyReport
    agreements: AgreementReport
    tenants: TenantReport
    activity: ActivitySummary
    generated_at: datetime


class MessageOut(PublicModel):
    message: str
