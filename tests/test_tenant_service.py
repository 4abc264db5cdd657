import asyncio
import uuid

import pytest

from core.errors import (
    AlreadyExists,
    Conflict,
    HasActiveRental,
    InvalidInput,
    NotAuthorized,
    NotFound,
)
from models.enums import EmploymentStatus, UserRole
from schemas.schema import ReferenceIn, TenantCreate, TenantSearch, TenantUpdate
from services.tenant_service import TenantService

from conftest import add_user


@pytest.fixture
def service(store, clock):
    return TenantService(store, clock=clock)


def test_create_profile_once_per_user(service, tenant_user):
    created = asyncio.run(
        service.create_tenant(
            TenantCreate(
                employer="Acme",
                annual_income=52000,
                references=[ReferenceIn(name="Jo", relationship="manager")],
            ),
            tenant_user.id,
        )
    )
    assert created.user_id == tenant_user.id
    assert created.references[0].name == "Jo"
    assert created.current_property_id is None

    with pytest.raises(AlreadyExists):
        asyncio.run(service.create_tenant(TenantCreate(), tenant_user.id))


def test_create_for_unknown_user(service):
    with pytest.raises(NotFound):
        asyncio.run(service.create_tenant(TenantCreate(), uuid.uuid4()))


def test_owner_updates_own_profile(clock, service, tenant_user, tenant_profile):
    clock.advance(days=1)
    updated = asyncio.run(
        service.update_my_profile(
            TenantUpdate(employment_status=EmploymentStatus.SELF_EMPLOYED), tenant_user
        )
    )
    assert updated.employment_status == EmploymentStatus.SELF_EMPLOYED
    assert updated.updated_at == clock.now


def test_update_requires_owner_or_admin(service, landlord, admin, tenant_profile):
    with pytest.raises(NotAuthorized):
        asyncio.run(
            service.update_tenant(
                tenant_profile.id, TenantUpdate(employer="X"), landlord
            )
        )

    updated = asyncio.run(
        service.update_tenant(tenant_profile.id, TenantUpdate(employer="X"), admin)
    )
    assert updated.employer == "X"

    with pytest.raises(InvalidInput):
        asyncio.run(service.update_tenant(tenant_profile.id, TenantUpdate(), admin))


def test_patch_schema_rejects_rental_pointers():
    with pytest.raises(ValueError):
        TenantUpdate(current_property_id=str(uuid.uuid4()))
    with pytest.raises(ValueError):
        TenantUpdate(rental_history=[])


def test_add_reference(service, tenant_user, tenant_profile, landlord):
    updated = asyncio.run(
        service.add_reference(
            tenant_profile.id,
            ReferenceIn(name="Sam", relationship="former landlord", phone="555-0101"),
            tenant_user,
        )
    )
    assert [r.name for r in updated.references] == ["Sam"]

    with pytest.raises(NotAuthorized):
        asyncio.run(
            service.add_reference(
                tenant_profile.id, ReferenceIn(name="Al", relationship="x"), landlord
            )
        )


def test_rental_history_visibility(
    store, service, tenant_profile, tenant_user, landlord, admin
):
    stranger = add_user(store, "someone@example.com", UserRole.TENANT)

    assert asyncio.run(service.get_rental_history(tenant_profile.id, tenant_user)) == []
    assert asyncio.run(service.get_rental_history(tenant_profile.id, landlord)) == []
    assert asyncio.run(service.get_rental_history(tenant_profile.id, admin)) == []
    with pytest.raises(NotAuthorized):
        asyncio.run(service.get_rental_history(tenant_profile.id, stranger))


def test_current_rental_follows_agreement(
    service, agreement_service, landlord, tenant_profile, active_agreement
):
    current = asyncio.run(service.get_current_rental(tenant_profile.id))
    assert current.agreement.id == active_agreement.id
    assert current.property.id == active_agreement.property_id

    asyncio.run(agreement_service.terminate_agreement(active_agreement.id, landlord))

    assert asyncio.run(service.get_current_rental(tenant_profile.id)) is None
    history = asyncio.run(service.get_rental_history(tenant_profile.id, landlord))
    assert [h.agreement_id for h in history] == [active_agreement.id]


def test_delete_with_active_rental_conflicts(
    store, service, admin, tenant_profile, active_agreement
):
    with pytest.raises(HasActiveRental) as exc:
        asyncio.run(service.delete_tenant(tenant_profile.id, admin))
    assert isinstance(exc.value, Conflict)
    assert tenant_profile.id in store.tenants


def test_delete_is_admin_only(store, service, admin, tenant_user, tenant_profile):
    with pytest.raises(NotAuthorized):
        asyncio.run(service.delete_tenant(tenant_profile.id, tenant_user))

    asyncio.run(service.delete_tenant(tenant_profile.id, admin))
    assert tenant_profile.id not in store.tenants
    with pytest.raises(NotFound):
        asyncio.run(service.get_tenant_by_user(tenant_user.id))


def test_search_and_statistics(store, service, tenant_profile, active_agreement):
    student = add_user(store, "student@example.com", UserRole.TENANT)
    asyncio.run(
        service.create_tenant(
            TenantCreate(employment_status=EmploymentStatus.STUDENT), student.id
        )
    )

    rich = asyncio.run(service.search_tenants(TenantSearch(min_income=50000)))
    assert [t.id for t in rich] == [tenant_profile.id]

    renting = asyncio.run(service.search_tenants(TenantSearch(has_active_rental=True)))
    assert [t.id for t in renting] == [tenant_profile.id]

    stats = asyncio.run(service.get_statistics())
    assert stats.total == 2
    assert stats.with_active_rentals == 1
    assert stats.without_rentals == 1
    assert stats.employment_status["student"] == 1
    assert stats.employment_status["employed"] == 1
    assert stats.employment_status["retired"] == 0
