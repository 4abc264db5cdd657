import logging
import uuid
from typing import Callable, List, Optional

from core.check_permission import CheckRolePermission
from core.date_helper import utc_now, whole_months_between
from core.errors import InvalidInput, NotFound, PropertyUnavailable
from core.mapper import EntityMapper
from core.store import EntityStore
from models.enums import AGREEMENT_ISSUER_ROLES, AgreementStatus, SigningParty
from models.models import RentalAgreement, User
from repos.auth_repo import AuthRepo
from repos.property_repo import PropertyRepo
from repos.rental_agreement_repo import RentalAgreementRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import (
    AgreementCreate,
    AgreementOut,
    AgreementStatistics,
    AgreementUpdate,
    TotalRentOut,
)

from . import agreement_lifecycle as lifecycle

logger = logging.getLogger(__name__)

LINKED_STATUSES = {
    AgreementStatus.ACTIVE,
    AgreementStatus.TERMINATED,
    AgreementStatus.EXPIRED,
}


class RentalAgreementService:
    def __init__(self, store: EntityStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock
        self.repo: RentalAgreementRepo = RentalAgreementRepo(store)
        self.property_repo: PropertyRepo = PropertyRepo(store)
        self.tenant_repo: TenantRepo = TenantRepo(store)
        self.auth_repo: AuthRepo = AuthRepo(store)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: EntityMapper = EntityMapper()

    async def _get_or_404(self, agreement_id: uuid.UUID) -> RentalAgreement:
        agreement = await self.repo.get_by_id(agreement_id)
        if not agreement:
            raise NotFound("Agreement not found")
        return agreement

    def _lock(self, agreement: RentalAgreement):
        return self.store.locks.hold(
            f"agreement:{agreement.id}", f"property:{agreement.property_id}"
        )

    async def _linked(self, agreement: RentalAgreement):
        prop = await self.property_repo.get_by_id(agreement.property_id)
        tenant = await self.tenant_repo.get_by_user(agreement.tenant_id)
        return prop, tenant

    def _commit(
        self, transition: lifecycle.Transition, now, prop=None, tenant=None
    ) -> None:
        if transition.is_noop:
            logger.info(
                "%s agreement_id=%s already recorded, nothing to apply",
                transition.event,
                transition.agreement_id,
            )
            return
        status_changed = transition.from_status != transition.to_status
        if status_changed and transition.to_status in LINKED_STATUSES:
            if prop is None:
                logger.warning(
                    "%s agreement_id=%s: property missing, status not changed",
                    transition.event,
                    transition.agreement_id,
                )
            if tenant is None:
                logger.warning(
                    "%s agreement_id=%s: no tenant profile, rental pointer not changed",
                    transition.event,
                    transition.agreement_id,
                )
        self.store.apply(transition.commands, now)
        logger.info(
            "%s agreement_id=%s %s->%s commands=%d",
            transition.event,
            transition.agreement_id,
            transition.from_status.value,
            transition.to_status.value,
            len(transition.commands),
        )

    async def create_agreement(self, data: AgreementCreate, current_user: User):
        await self.permission.check_roles(
            current_user.role,
            AGREEMENT_ISSUER_ROLES,
            "Only landlords and admins can create agreements",
        )
        async with self.store.locks.hold(f"property:{data.property_id}"):
            prop = await self.property_repo.get_by_id(data.property_id)
            if not prop:
                raise NotFound("Property not found")
            if not prop.is_available():
                raise PropertyUnavailable("Property is not available for rent")

            if not await self.auth_repo.by_id(data.tenant_id):
                raise NotFound("Tenant not found")
            if not await self.auth_repo.by_id(current_user.id):
                raise NotFound("Landlord not found")

            now = self.clock()
            agreement = await self.repo.create(
                RentalAgreement(
                    property_id=data.property_id,
                    tenant_id=data.tenant_id,
                    landlord_id=current_user.id,
                    start_date=data.start_date,
                    end_date=data.end_date,
                    monthly_rent=data.monthly_rent,
                    security_deposit=data.security_deposit,
                    terms=data.terms,
                    created_at=now,
                    updated_at=now,
                )
            )
        logger.info(
            "agreement.created agreement_id=%s property_id=%s",
            agreement.id,
            agreement.property_id,
        )
        return self.mapper.one(agreement, AgreementOut)

    async def get_agreement(self, agreement_id: uuid.UUID):
        agreement = await self._get_or_404(agreement_id)
        return self.mapper.one(agreement, AgreementOut)

    async def get_all_agreements(self) -> List[AgreementOut]:
        return self.mapper.many(await self.repo.get_all(), AgreementOut)

    async def get_agreements_by_tenant(self, tenant_id: uuid.UUID):
        return self.mapper.many(await self.repo.get_by_tenant(tenant_id), AgreementOut)

    async def get_agreements_by_landlord(self, landlord_id: uuid.UUID):
        return self.mapper.many(
            await self.repo.get_by_landlord(landlord_id), AgreementOut
        )

    async def get_agreements_by_property(self, property_id: uuid.UUID):
        return self.mapper.many(
            await self.repo.get_by_property(property_id), AgreementOut
        )

    async def get_active_agreements(self):
        return self.mapper.many(await self.repo.get_active(), AgreementOut)

    async def update_agreement(
        self, agreement_id: uuid.UUID, data: AgreementUpdate, current_user: User
    ):
        changes = data.changes()
        if not changes:
            raise InvalidInput("No fields provided for update.")

        agreement = await self._get_or_404(agreement_id)
        async with self._lock(agreement):
            agreement = await self._get_or_404(agreement_id)
            prop, tenant = await self._linked(agreement)
            now = self.clock()
            transition = lifecycle.plan_update(
                agreement,
                changes,
                current_user.id,
                current_user.role,
                now,
                prop,
                tenant,
            )
            start = changes.get("start_date", agreement.start_date)
            end = changes.get("end_date", agreement.end_date)
            if end < start:
                raise InvalidInput("end_date must be after start_date")
            self._commit(transition, now, prop, tenant)

        return self.mapper.one(agreement, AgreementOut)

    async def send_for_signing(self, agreement_id: uuid.UUID, current_user: User):
        agreement = await self._get_or_404(agreement_id)
        async with self._lock(agreement):
            agreement = await self._get_or_404(agreement_id)
            now = self.clock()
            self._commit(
                lifecycle.plan_send_for_signing(agreement, current_user.id), now
            )
        return self.mapper.one(agreement, AgreementOut)

    async def _sign(
        self, agreement_id: uuid.UUID, party: SigningParty, current_user: User
    ):
        agreement = await self._get_or_404(agreement_id)
        async with self._lock(agreement):
            agreement = await self._get_or_404(agreement_id)
            prop, tenant = await self._linked(agreement)
            now = self.clock()
            transition = lifecycle.plan_signature(
                agreement, party, current_user.id, now, prop, tenant
            )
            self._commit(transition, now, prop, tenant)
        return self.mapper.one(agreement, AgreementOut)

    async def sign_by_tenant(self, agreement_id: uuid.UUID, current_user: User):
        return await self._sign(agreement_id, SigningParty.TENANT, current_user)

    async def sign_by_landlord(self, agreement_id: uuid.UUID, current_user: User):
        return await self._sign(agreement_id, SigningParty.LANDLORD, current_user)

    async def terminate_agreement(
        self,
        agreement_id: uuid.UUID,
        current_user: User,
        reason: Optional[str] = None,
    ):
        agreement = await self._get_or_404(agreement_id)
        async with self._lock(agreement):
            agreement = await self._get_or_404(agreement_id)
            prop, tenant = await self._linked(agreement)
            now = self.clock()
            transition = lifecycle.plan_termination(
                agreement, reason, current_user.id, current_user.role, now, prop, tenant
            )
            self._commit(transition, now, prop, tenant)
        return self.mapper.one(agreement, AgreementOut)

    async def delete_agreement(self, agreement_id: uuid.UUID, current_user: User):
        agreement = await self._get_or_404(agreement_id)
        async with self._lock(agreement):
            agreement = await self._get_or_404(agreement_id)
            lifecycle.check_deletable(agreement, current_user.role)
            await self.repo.delete(agreement_id)
        logger.info("agreement.deleted agreement_id=%s", agreement_id)
        return {"message": "Agreement deleted successfully"}

    async def get_statistics(self, landlord_id: Optional[uuid.UUID] = None):
        agreements = (
            await self.repo.get_by_landlord(landlord_id)
            if landlord_id
            else await self.repo.get_all()
        )
        counts = {status.value: 0 for status in AgreementStatus}
        for agreement in agreements:
            counts[agreement.status.value] += 1

        active = [a for a in agreements if a.status == AgreementStatus.ACTIVE]
        revenue = sum(a.monthly_rent for a in active)
        return AgreementStatistics(
            total=len(agreements),
            **counts,
            total_monthly_revenue=revenue,
            average_rent=revenue / len(active) if active else 0,
        )

    async def calculate_total_rent(self, agreement_id: uuid.UUID):
        agreement = await self._get_or_404(agreement_id)
        return TotalRentOut(
            agreement_id=agreement.id,
            months=whole_months_between(agreement.start_date, agreement.end_date),
            monthly_rent=agreement.monthly_rent,
            total_rent=agreement.total_rent(),
        )
