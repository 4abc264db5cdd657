import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from core.store import EntityStore
from models.enums import UserRole
from models.models import Property, Tenant, User
from schemas.schema import AgreementCreate
from services.rental_agreement_service import RentalAgreementService


class FixedClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def add_user(store: EntityStore, email: str, role: UserRole, **fields) -> User:
    user = User(
        email=email,
        first_name=fields.pop("first_name", email.split("@")[0].title()),
        last_name=fields.pop("last_name", "Example"),
        role=role,
        **fields,
    )
    return store.users.create(user)


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def admin(store):
    return add_user(store, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def landlord(store):
    return add_user(store, "landlord@example.com", UserRole.LANDLORD)


@pytest.fixture
def other_landlord(store):
    return add_user(store, "other.landlord@example.com", UserRole.LANDLORD)


@pytest.fixture
def tenant_user(store):
    return add_user(store, "tenant@example.com", UserRole.TENANT)


@pytest.fixture
def tenant_profile(store, tenant_user):
    return store.tenants.create(Tenant(user_id=tenant_user.id, annual_income=60000))


@pytest.fixture
def listed_property(store, landlord):
    return store.properties.create(
        Property(
            title="Sunny two-bedroom flat",
            address="12 Elm Street",
            city="Springfield",
            state="IL",
            price=2000,
            bedrooms=2,
            owner_id=landlord.id,
        )
    )


@pytest.fixture
def agreement_service(store, clock):
    return RentalAgreementService(store, clock=clock)


@pytest.fixture
def draft_agreement(agreement_service, landlord, tenant_user, listed_property):
    return asyncio.run(
        agreement_service.create_agreement(
            AgreementCreate(
                property_id=listed_property.id,
                tenant_id=tenant_user.id,
                start_date=date(2024, 3, 1),
                end_date=date(2025, 2, 28),
                monthly_rent=2000,
                security_deposit=4000,
                terms="No pets.",
            ),
            landlord,
        )
    )


@pytest.fixture
def pending_agreement(agreement_service, draft_agreement, landlord):
    return asyncio.run(agreement_service.send_for_signing(draft_agreement.id, landlord))


@pytest.fixture
def active_agreement(
    agreement_service, tenant_profile, pending_agreement, landlord, tenant_user
):
    asyncio.run(agreement_service.sign_by_landlord(pending_agreement.id, landlord))
    return asyncio.run(
        agreement_service.sign_by_tenant(pending_agreement.id, tenant_user)
    )
