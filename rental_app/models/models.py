import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional
from uuid import uuid4

from core.date_helper import utc_now, whole_months_between
from core.errors import InvalidStatus
from core.validate_enum import validate_enum

from .enums import (
    AgreementStatus,
    EmploymentStatus,
    ListingType,
    PropertyStatus,
    PropertyTypes,
    UserRole,
)


@dataclass
class User:
    email: str
    first_name: str
    last_name: str
    hashed_password: str = field(default="", repr=False)
    phone: Optional[str] = None
    role: UserRole = UserRole.TENANT
    id: uuid.UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def normalize(self) -> None:
        self.email = self.email.strip().lower()
        self.first_name = self.first_name.strip().title()
        self.last_name = self.last_name.strip().title()

    def __repr__(self):
        return f"<User {self.email} ({self.id})>"


@dataclass
class Property:
    title: str
    address: str
    price: float
    owner_id: uuid.UUID
    description: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: PropertyTypes = PropertyTypes.APARTMENT
    bedrooms: int = 0
    bathrooms: float = 0
    square_feet: float = 0
    rent_or_sale: ListingType = ListingType.RENT
    status: PropertyStatus = PropertyStatus.AVAILABLE
    amenities: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def is_available(self) -> bool:
        return self.status == PropertyStatus.AVAILABLE

    def update_status(self, new_status, now: datetime | None = None) -> None:
        self.status = validate_enum(
            new_status, PropertyStatus, field="status", error_cls=InvalidStatus
        )
        self.updated_at = now or utc_now()

    def add_amenity(self, amenity: str, now: datetime | None = None) -> bool:
        # duplicates are ignored and leave updated_at alone
        if amenity in self.amenities:
            return False
        self.amenities.append(amenity)
        self.updated_at = now or utc_now()
        return True

    def add_image(self, image_url: str, now: datetime | None = None) -> None:
        self.images.append(image_url)
        self.updated_at = now or utc_now()


@dataclass
class RentalAgreement:
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: float
    security_deposit: float = 0
    status: AgreementStatus = AgreementStatus.DRAFT
    terms: str = ""
    signed_by_tenant: bool = False
    signed_by_landlord: bool = False
    signed_at: Optional[datetime] = None
    termination_reason: Optional[str] = None
    terminated_at: Optional[datetime] = None
    id: uuid.UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def is_active(self) -> bool:
        return self.status == AgreementStatus.ACTIVE

    def is_fully_signed(self) -> bool:
        return self.signed_by_tenant and self.signed_by_landlord

    def total_rent(self) -> float:
        return whole_months_between(self.start_date, self.end_date) * self.monthly_rent


@dataclass
class TenantReference:
    name: str
    relationship: str
    phone: Optional[str] = None
    email: Optional[str] = None
    added_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class RentalHistoryEntry:
    property_id: uuid.UUID
    agreement_id: uuid.UUID
    start_date: date
    end_date: datetime
    landlord_id: uuid.UUID
    rating: Optional[int] = None
    added_at: datetime = field(default_factory=utc_now)


@dataclass
class Tenant:
    user_id: uuid.UUID
    current_property_id: Optional[uuid.UUID] = None
    current_agreement_id: Optional[uuid.UUID] = None
    employment_status: EmploymentStatus = EmploymentStatus.EMPLOYED
    employer: str = ""
    annual_income: float = 0
    credit_score: Optional[int] = None
    previous_addresses: List[str] = field(default_factory=list)
    references: List[TenantReference] = field(default_factory=list)
    rental_history: List[RentalHistoryEntry] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def has_active_rental(self) -> bool:
        return self.current_property_id is not None

    def add_reference(self, reference: TenantReference, now: datetime | None = None):
        self.references.append(reference)
        self.updated_at = now or utc_now()

    def add_rental_history(
        self, entry: RentalHistoryEntry, now: datetime | None = None
    ) -> None:
        self.rental_history.append(entry)
        self.updated_at = now or utc_now()

    def update_current_rental(
        self,
        property_id: uuid.UUID,
        agreement_id: uuid.UUID,
        now: datetime | None = None,
    ) -> None:
        self.current_property_id = property_id
        self.current_agreement_id = agreement_id
        self.updated_at = now or utc_now()

    def clear_current_rental(self, now: datetime | None = None) -> None:
        self.current_property_id = None
        self.current_agreement_id = None
        self.updated_at = now or utc_now()
