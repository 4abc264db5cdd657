import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv

from core.get_current_user import get_current_user, require_roles
from core.safe_handler import safe_handler
from core.store import EntityStore, get_store
from core.throttling import rate_limit
from models.enums import UserRole
from models.models import User
from schemas.schema import (
    AgreementCreate,
    AgreementOut,
    AgreementStatistics,
    AgreementUpdate,
    MessageOut,
    TerminateIn,
    TotalRentOut,
)
from services.rental_agreement_service import RentalAgreementService

router = APIRouter(tags=["Rental Agreements"])

admin_only = require_roles(UserRole.ADMIN)
issuers = require_roles(UserRole.LANDLORD, UserRole.ADMIN)


@cbv(router=router)
class RentalAgreementRoutes:
    @router.get("/", response_model=list[AgreementOut], dependencies=[rate_limit])
    @safe_handler
    async def get_all(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await RentalAgreementService(store).get_all_agreements()

    @router.get("/active", response_model=list[AgreementOut], dependencies=[rate_limit])
    @safe_handler
    async def get_active(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(issuers),
    ):
        return await RentalAgreementService(store).get_active_agreements()

    @router.get(
        "/statistics", response_model=AgreementStatistics, dependencies=[rate_limit]
    )
    @safe_handler
    async def get_statistics(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await RentalAgreementService(store).get_statistics()

    @router.get(
        "/my/agreements", response_model=list[AgreementOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def get_mine(
        self,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        service = RentalAgreementService(store)
        if current_user.role == UserRole.LANDLORD:
            return await service.get_agreements_by_landlord(current_user.id)
        return await service.get_agreements_by_tenant(current_user.id)

    @router.get(
        "/tenant/{tenant_id}", response_model=list[AgreementOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def get_by_tenant(
        self,
        tenant_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).get_agreements_by_tenant(tenant_id)

    @router.get(
        "/landlord/{landlord_id}",
        response_model=list[AgreementOut],
        dependencies=[rate_limit],
    )
    @safe_handler
    async def get_by_landlord(
        self,
        landlord_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).get_agreements_by_landlord(
            landlord_id
        )

    @router.get(
        "/property/{property_id}",
        response_model=list[AgreementOut],
        dependencies=[rate_limit],
    )
    @safe_handler
    async def get_by_property(
        self,
        property_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).get_agreements_by_property(
            property_id
        )

    @router.get(
        "/{agreement_id}", response_model=AgreementOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def get_one(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).get_agreement(agreement_id)

    @router.get(
        "/{agreement_id}/total-rent", response_model=TotalRentOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def get_total_rent(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).calculate_total_rent(agreement_id)

    @router.post(
        "/", status_code=201, response_model=AgreementOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def create(
        self,
        data: AgreementCreate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(issuers),
    ):
        return await RentalAgreementService(store).create_agreement(data, current_user)

    @router.post(
        "/{agreement_id}/send-for-signing",
        response_model=AgreementOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def send_for_signing(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(issuers),
    ):
        return await RentalAgreementService(store).send_for_signing(
            agreement_id, current_user
        )

    @router.post(
        "/{agreement_id}/sign/landlord",
        response_model=AgreementOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def sign_by_landlord(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(issuers),
    ):
        return await RentalAgreementService(store).sign_by_landlord(
            agreement_id, current_user
        )

    @router.post(
        "/{agreement_id}/sign/tenant",
        response_model=AgreementOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def sign_by_tenant(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).sign_by_tenant(
            agreement_id, current_user
        )

    @router.post(
        "/{agreement_id}/terminate",
        response_model=AgreementOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def terminate(
        self,
        agreement_id: uuid.UUID,
        data: Optional[TerminateIn] = None,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(issuers),
    ):
        return await RentalAgreementService(store).terminate_agreement(
            agreement_id, current_user, data.reason if data else None
        )

    @router.put(
        "/{agreement_id}", response_model=AgreementOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def update(
        self,
        agreement_id: uuid.UUID,
        data: AgreementUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await RentalAgreementService(store).update_agreement(
            agreement_id, data, current_user
        )

    @router.delete(
        "/{agreement_id}", response_model=MessageOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def delete(
        self,
        agreement_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(admin_only),
    ):
        return await RentalAgreementService(store).delete_agreement(
            agreement_id, current_user
        )
