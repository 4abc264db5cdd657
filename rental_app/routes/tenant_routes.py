import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv

from core.get_current_user import get_current_user, require_roles
from core.safe_handler import safe_handler
from core.store import EntityStore, get_store
from core.throttling import rate_limit
from models.enums import EmploymentStatus, UserRole
from models.models import User
from schemas.schema import (
    CurrentRentalOut,
    MessageOut,
    ReferenceIn,
    RentalHistoryOut,
    TenantCreate,
    TenantOut,
    TenantSearch,
    TenantStatistics,
    TenantUpdate,
)
from services.tenant_service import TenantService

router = APIRouter(tags=["Tenants Management"])

tenants_only = require_roles(UserRole.TENANT)
admin_only = require_roles(UserRole.ADMIN)
screeners = require_roles(UserRole.ADMIN, UserRole.LANDLORD)


@cbv(router=router)
class TenantsRoutes:
    @router.post(
        "/", status_code=201, response_model=TenantOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def create(
        self,
        payload: TenantCreate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(tenants_only),
    ):
        return await TenantService(store).create_tenant(payload, current_user.id)

    @router.get("/me", response_model=TenantOut, dependencies=[rate_limit])
    @safe_handler
    async def get_my_profile(
        self,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(tenants_only),
    ):
        return await TenantService(store).get_tenant_by_user(current_user.id)

    @router.put("/me", response_model=TenantOut, dependencies=[rate_limit])
    @safe_handler
    async def update_my_profile(
        self,
        payload: TenantUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(tenants_only),
    ):
        return await TenantService(store).update_my_profile(payload, current_user)

    @router.get("/", response_model=list[TenantOut], dependencies=[rate_limit])
    @safe_handler
    async def get_all(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(screeners),
    ):
        return await TenantService(store).get_all_tenants()

    @router.get("/search", response_model=list[TenantOut], dependencies=[rate_limit])
    @safe_handler
    async def search(
        self,
        employment_status: Optional[EmploymentStatus] = Query(
            None, alias="employmentStatus"
        ),
        min_income: Optional[float] = Query(None, alias="minIncome"),
        max_income: Optional[float] = Query(None, alias="maxIncome"),
        has_active_rental: Optional[bool] = Query(None, alias="hasActiveRental"),
        store: EntityStore = Depends(get_store),
        _: User = Depends(screeners),
    ):
        filters = TenantSearch(
            employment_status=employment_status,
            min_income=min_income,
            max_income=max_income,
            has_active_rental=has_active_rental,
        )
        return await TenantService(store).search_tenants(filters)

    @router.get(
        "/statistics", response_model=TenantStatistics, dependencies=[rate_limit]
    )
    @safe_handler
    async def get_statistics(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await TenantService(store).get_statistics()

    @router.delete("/{tenant_id}", response_model=MessageOut, dependencies=[rate_limit])
    @safe_handler
    async def delete(
        self,
        tenant_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(admin_only),
    ):
        return await TenantService(store).delete_tenant(tenant_id, current_user)

    @router.get("/{tenant_id}", response_model=TenantOut, dependencies=[rate_limit])
    @safe_handler
    async def get_one(
        self,
        tenant_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await TenantService(store).get_tenant(tenant_id)

    @router.put("/{tenant_id}", response_model=TenantOut, dependencies=[rate_limit])
    @safe_handler
    async def update(
        self,
        tenant_id: uuid.UUID,
        payload: TenantUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await TenantService(store).update_tenant(
            tenant_id, payload, current_user
        )

    @router.post(
        "/{tenant_id}/references", response_model=TenantOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def add_reference(
        self,
        tenant_id: uuid.UUID,
        payload: ReferenceIn,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await TenantService(store).add_reference(
            tenant_id, payload, current_user
        )

    @router.get(
        "/{tenant_id}/history",
        response_model=list[RentalHistoryOut],
        dependencies=[rate_limit],
    )
    @safe_handler
    async def get_rental_history(
        self,
        tenant_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await TenantService(store).get_rental_history(tenant_id, current_user)

    @router.get(
        "/{tenant_id}/current-rental",
        response_model=Optional[CurrentRentalOut],
        dependencies=[rate_limit],
    )
    @safe_handler
    async def get_current_rental(
        self,
        tenant_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await TenantService(store).get_current_rental(tenant_id)
