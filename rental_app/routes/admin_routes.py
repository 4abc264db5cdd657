from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv

from core.get_current_user import require_roles
from core.safe_handler import safe_handler
from core.store import EntityStore, get_store
from core.throttling import admin_rate_limit
from models.enums import UserRole
from models.models import User
from schemas.schema import (
    ActivitySummary,
    AgreementReport,
    DashboardOut,
    FullReport,
    PropertyReport,
    TenantReport,
    UserReport,
)
from services.report_service import ReportService

router = APIRouter(tags=["Admin Reports"])

admin_only = require_roles(UserRole.ADMIN)


@cbv(router=router)
class AdminRoutes:
    @router.get(
        "/dashboard", response_model=DashboardOut, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def dashboard(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_dashboard()

    @router.get(
        "/reports/users", response_model=UserReport, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def user_report(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_user_report()

    @router.get(
        "/reports/properties",
        response_model=PropertyReport,
        dependencies=[admin_rate_limit],
    )
    @safe_handler
    async def property_report(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_property_report()

    @router.get(
        "/reports/agreements",
        response_model=AgreementReport,
        dependencies=[admin_rate_limit],
    )
    @safe_handler
    async def agreement_report(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_agreement_report()

    @router.get(
        "/reports/tenants", response_model=TenantReport, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def tenant_report(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_tenant_report()

    @router.get(
        "/reports/activity",
        response_model=ActivitySummary,
        dependencies=[admin_rate_limit],
    )
    @safe_handler
    async def activity(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_activity_summary()

    @router.get(
        "/reports/full", response_model=FullReport, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def full_report(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await ReportService(store).get_full_report()
