"""Read-only aggregates over the store for the admin reports.

Averages are 0 when the set they average over is empty. "Recent" slices hold
the newest entities by ``created_at``.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Callable, Dict, Iterable, Type

from core.date_helper import days_ago, utc_now
from core.mapper import EntityMapper
from core.settings import settings
from core.store import EntityStore
from models.enums import (
    AgreementStatus,
    EmploymentStatus,
    ListingType,
    PropertyStatus,
    PropertyTypes,
    UserRole,
)
from repos.auth_repo import AuthRepo
from repos.property_repo import PropertyRepo
from repos.rental_agreement_repo import RentalAgreementRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import (
    ActivityCounts,
    ActivitySummary,
    ActivityTotals,
    AgreementFinancials,
    AgreementOut,
    AgreementReport,
    DashboardOut,
    FullReport,
    PropertyReport,
    TenantReport,
    UserOut,
    UserReport,
)

logger = logging.getLogger(__name__)


def count_by(items: Iterable, attr: str, enum_cls: Type[Enum]) -> Dict[str, int]:
    counts = Counter(getattr(item, attr).value for item in items)
    return {member.value: counts.get(member.value, 0) for member in enum_cls}


def average(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0


class ReportService:
    def __init__(
        self,
        store: EntityStore,
        clock: Callable = utc_now,
        recent_limit: int | None = None,
        activity_days: int | None = None,
    ):
        self.clock = clock
        self.recent_limit = recent_limit or settings.RECENT_ITEMS_LIMIT
        self.activity_days = activity_days or settings.ACTIVITY_WINDOW_DAYS
        self.auth_repo: AuthRepo = AuthRepo(store)
        self.property_repo: PropertyRepo = PropertyRepo(store)
        self.agreement_repo: RentalAgreementRepo = RentalAgreementRepo(store)
        self.tenant_repo: TenantRepo = TenantRepo(store)
        self.mapper: EntityMapper = EntityMapper()

    async def get_dashboard(self) -> DashboardOut:
        users = await self.auth_repo.get_all()
        properties = await self.property_repo.get_all()
        agreements = await self.agreement_repo.get_all()

        return DashboardOut(
            total_users=len(users),
            users_by_role=count_by(users, "role", UserRole),
            total_properties=len(properties),
            properties_by_status=count_by(properties, "status", PropertyStatus),
            properties_by_listing_type=count_by(properties, "rent_or_sale", ListingType),
            total_agreements=len(agreements),
            agreements_by_status=count_by(agreements, "status", AgreementStatus),
            total_revenue=sum(a.monthly_rent for a in agreements if a.is_active()),
        )

    async def get_user_report(self) -> UserReport:
        users = await self.auth_repo.get_all()
        return UserReport(
            total_users=len(users),
            users_by_role={
                role.value: self.mapper.many(
                    [u for u in users if u.role == role], UserOut
                )
                for role in UserRole
            },
            recent_users=self.mapper.recent(users, UserOut, self.recent_limit),
        )

    async def get_property_report(self) -> PropertyReport:
        properties = await self.property_repo.get_all()
        return PropertyReport(
            total_properties=len(properties),
            by_status=count_by(properties, "status", PropertyStatus),
            by_type=count_by(properties, "property_type", PropertyTypes),
            by_listing_type=count_by(properties, "rent_or_sale", ListingType),
            average_price=average(p.price for p in properties),
            average_rent_price=average(
                p.price for p in properties if p.rent_or_sale == ListingType.RENT
            ),
            average_sale_price=average(
                p.price for p in properties if p.rent_or_sale == ListingType.SALE
            ),
        )

    async def get_agreement_report(self) -> AgreementReport:
        agreements = await self.agreement_repo.get_all()
        active = [a for a in agreements if a.is_active()]
        return AgreementReport(
            total_agreements=len(agreements),
            by_status=count_by(agreements, "status", AgreementStatus),
            financials=AgreementFinancials(
                total_monthly_revenue=sum(a.monthly_rent for a in active),
                average_monthly_rent=average(a.monthly_rent for a in active),
                total_security_deposits=sum(a.security_deposit for a in active),
            ),
            recent_agreements=self.mapper.recent(
                agreements, AgreementOut, self.recent_limit
            ),
        )

    async def get_tenant_report(self) -> TenantReport:
        tenants = await self.tenant_repo.get_all()
        with_rentals = sum(1 for t in tenants if t.has_active_rental())
        return TenantReport(
            total_tenants=len(tenants),
            with_active_rentals=with_rentals,
            without_rentals=len(tenants) - with_rentals,
            by_employment_status=count_by(
                tenants, "employment_status", EmploymentStatus
            ),
            average_income=average(
                t.annual_income for t in tenants if t.annual_income > 0
            ),
        )

    async def get_activity_summary(self) -> ActivitySummary:
        cutoff = days_ago(self.activity_days, self.clock())
        users = await self.auth_repo.get_all()
        properties = await self.property_repo.get_all()
        agreements = await self.agreement_repo.get_all()

        return ActivitySummary(
            last_week=ActivityCounts(
                new_users=sum(1 for u in users if u.created_at > cutoff),
                new_properties=sum(1 for p in properties if p.created_at > cutoff),
                new_agreements=sum(1 for a in agreements if a.created_at > cutoff),
            ),
            totals=ActivityTotals(
                users=len(users),
                properties=len(properties),
                agreements=len(agreements),
            ),
        )

    async def get_full_report(self) -> FullReport:
        report = FullReport(
            dashboard=await self.get_dashboard(),
            users=await self.get_user_report(),
            properties=await self.get_property_report(),
            agreements=await self.get_agreement_report(),
            tenants=await self.get_tenant_report(),
            activity=await self.get_activity_summary(),
            generated_at=self.clock(),
        )
        logger.info("report.generated kind=full")
        return report
