import logging
import uuid
from typing import Callable, Dict, Optional

from core.check_permission import CheckRolePermission
from core.date_helper import utc_now
from core.errors import (
    AlreadyExists,
    HasActiveRental,
    InvalidInput,
    NotAuthorized,
    NotFound,
)
from core.mapper import EntityMapper
from core.store import EntityStore
from models.enums import EmploymentStatus, UserRole
from models.models import Tenant, TenantReference, User
from repos.auth_repo import AuthRepo
from repos.property_repo import PropertyRepo
from repos.rental_agreement_repo import RentalAgreementRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import (
    AgreementOut,
    CurrentRentalOut,
    PropertyOut,
    ReferenceIn,
    RentalHistoryOut,
    TenantCreate,
    TenantOut,
    TenantSearch,
    TenantStatistics,
    TenantUpdate,
)

logger = logging.getLogger(__name__)

HISTORY_VIEWER_ROLES = {UserRole.ADMIN, UserRole.LANDLORD}


class TenantService:
    def __init__(self, store: EntityStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock
        self.repo: TenantRepo = TenantRepo(store)
        self.auth_repo: AuthRepo = AuthRepo(store)
        self.property_repo: PropertyRepo = PropertyRepo(store)
        self.agreement_repo: RentalAgreementRepo = RentalAgreementRepo(store)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: EntityMapper = EntityMapper()

    async def _get_or_404(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self.repo.get_by_id(tenant_id)
        if not tenant:
            raise NotFound("Tenant profile not found")
        return tenant

    async def _check_owner(self, tenant: Tenant, current_user: User) -> None:
        await self.permission.check_owner_or_admin(
            tenant.user_id,
            current_user.id,
            current_user.role,
            "Not authorized to modify this tenant profile",
        )

    async def create_tenant(self, data: TenantCreate, user_id: uuid.UUID):
        async with self.store.locks.hold(f"tenant-user:{user_id}"):
            if not await self.auth_repo.by_id(user_id):
                raise NotFound("User not found")
            if await self.repo.tenant_exists(user_id):
                raise AlreadyExists("Tenant profile already exists for this user")

            now = self.clock()
            tenant = await self.repo.create(
                Tenant(
                    user_id=user_id,
                    employment_status=data.employment_status,
                    employer=data.employer,
                    annual_income=data.annual_income,
                    credit_score=data.credit_score,
                    previous_addresses=list(data.previous_addresses),
                    references=[
                        TenantReference(**ref.model_dump(), added_at=now)
                        for ref in data.references
                    ],
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info("tenant.created tenant_id=%s user_id=%s", tenant.id, user_id)
        return self.mapper.one(tenant, TenantOut)

    async def get_tenant(self, tenant_id: uuid.UUID):
        return self.mapper.one(await self._get_or_404(tenant_id), TenantOut)

    async def get_tenant_by_user(self, user_id: uuid.UUID):
        tenant = await self.repo.get_by_user(user_id)
        if not tenant:
            raise NotFound("Tenant profile not found")
        return self.mapper.one(tenant, TenantOut)

    async def get_all_tenants(self):
        return self.mapper.many(await self.repo.get_all(), TenantOut)

    async def search_tenants(self, filters: TenantSearch):
        return self.mapper.many(await self.repo.search(filters), TenantOut)

    async def update_tenant(
        self, tenant_id: uuid.UUID, data: TenantUpdate, current_user: User
    ):
        update_data = data.changes()
        if not update_data:
            raise InvalidInput("No fields provided for update.")

        async with self.store.locks.hold(f"tenant:{tenant_id}"):
            tenant = await self._get_or_404(tenant_id)
            await self._check_owner(tenant, current_user)
            tenant = await self.repo.update(tenant_id, update_data, self.clock())

        logger.info(
            "tenant.updated tenant_id=%s fields=%s",
            tenant_id,
            ",".join(sorted(update_data)),
        )
        return self.mapper.one(tenant, TenantOut)

    async def update_my_profile(self, data: TenantUpdate, current_user: User):
        tenant = await self.repo.get_by_user(current_user.id)
        if not tenant:
            raise NotFound("Tenant profile not found")
        return await self.update_tenant(tenant.id, data, current_user)

    async def add_reference(
        self, tenant_id: uuid.UUID, data: ReferenceIn, current_user: User
    ):
        async with self.store.locks.hold(f"tenant:{tenant_id}"):
            tenant = await self._get_or_404(tenant_id)
            await self._check_owner(tenant, current_user)
            now = self.clock()
            tenant.add_reference(TenantReference(**data.model_dump(), added_at=now), now)

        logger.info("tenant.reference_added tenant_id=%s", tenant_id)
        return self.mapper.one(tenant, TenantOut)

    async def get_rental_history(self, tenant_id: uuid.UUID, current_user: User):
        tenant = await self._get_or_404(tenant_id)
        if (
            tenant.user_id != current_user.id
            and current_user.role not in HISTORY_VIEWER_ROLES
        ):
            raise NotAuthorized("Not authorized to view this rental history")
        return self.mapper.many(tenant.rental_history, RentalHistoryOut)

    async def get_current_rental(
        self, tenant_id: uuid.UUID
    ) -> Optional[CurrentRentalOut]:
        tenant = await self._get_or_404(tenant_id)
        if not tenant.has_active_rental():
            return None

        prop = await self.property_repo.get_by_id(tenant.current_property_id)
        agreement = await self.agreement_repo.get_by_id(tenant.current_agreement_id)
        return CurrentRentalOut(
            property=self.mapper.one(prop, PropertyOut) if prop else None,
            agreement=self.mapper.one(agreement, AgreementOut) if agreement else None,
        )

    async def delete_tenant(self, tenant_id: uuid.UUID, current_user: User):
        await self.permission.check_admin(
            current_user.role, "Only admins can delete tenant profiles"
        )
        async with self.store.locks.hold(f"tenant:{tenant_id}"):
            tenant = await self._get_or_404(tenant_id)
            if tenant.has_active_rental():
                raise HasActiveRental("Cannot delete tenant with an active rental")
            await self.repo.delete(tenant_id)

        logger.info("tenant.deleted tenant_id=%s", tenant_id)
        return {"message": "Tenant profile deleted successfully"}

    async def get_statistics(self):
        tenants = await self.repo.get_all()
        by_employment: Dict[str, int] = {status.value: 0 for status in EmploymentStatus}
        for tenant in tenants:
            by_employment[tenant.employment_status.value] += 1

        active = sum(1 for t in tenants if t.has_active_rental())
        return TenantStatistics(
            total=len(tenants),
            with_active_rentals=active,
            without_rentals=len(tenants) - active,
            employment_status=by_employment,
        )
