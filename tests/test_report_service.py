import asyncio
from datetime import timedelta

import pytest

from models.enums import EmploymentStatus, ListingType, UserRole
from models.models import Property, Tenant
from services.report_service import ReportService, average, count_by

from conftest import add_user


@pytest.fixture
def reports(store, clock):
    return ReportService(store, clock=clock, recent_limit=2, activity_days=7)


def test_averages_are_zero_on_empty_store(reports):
    props = asyncio.run(reports.get_property_report())
    agreements = asyncio.run(reports.get_agreement_report())
    tenants = asyncio.run(reports.get_tenant_report())

    assert props.average_price == 0
    assert props.average_rent_price == 0
    assert props.average_sale_price == 0
    assert agreements.financials.average_monthly_rent == 0
    assert tenants.average_income == 0
    assert agreements.recent_agreements == []


def test_count_by_lists_every_member(store, admin, landlord, tenant_user):
    counts = count_by(store.users.get_all(), "role", UserRole)
    assert counts == {"admin": 1, "landlord": 1, "tenant": 1, "agent": 0}
    assert average([]) == 0


def test_dashboard_counts_active_revenue(
    reports, landlord, listed_property, active_agreement
):
    dashboard = asyncio.run(reports.get_dashboard())

    assert dashboard.total_users == 2
    assert dashboard.total_properties == 1
    assert dashboard.properties_by_status["rented"] == 1
    assert dashboard.properties_by_listing_type == {"rent": 1, "sale": 0}
    assert dashboard.agreements_by_status["active"] == 1
    assert dashboard.total_revenue == 2000


def test_average_income_skips_zero_incomes(store, reports, tenant_user):
    retiree = add_user(store, "retiree@example.com", UserRole.TENANT)
    student = add_user(store, "student@example.com", UserRole.TENANT)
    store.tenants.create(Tenant(user_id=tenant_user.id, annual_income=40000))
    store.tenants.create(Tenant(user_id=retiree.id, annual_income=80000))
    store.tenants.create(
        Tenant(user_id=student.id, employment_status=EmploymentStatus.STUDENT)
    )

    report = asyncio.run(reports.get_tenant_report())

    assert report.total_tenants == 3
    assert report.average_income == 60000
    assert report.by_employment_status["student"] == 1
    assert report.without_rentals == 3


def test_property_report_splits_listing_types(store, reports, landlord):
    listings = [
        (1000, ListingType.RENT),
        (3000, ListingType.RENT),
        (500000, ListingType.SALE),
    ]
    for price, listing in listings:
        store.properties.create(
            Property(
                title="p",
                address="a",
                price=price,
                owner_id=landlord.id,
                rent_or_sale=listing,
            )
        )

    report = asyncio.run(reports.get_property_report())

    assert report.average_rent_price == 2000
    assert report.average_sale_price == 500000
    assert report.by_type["apartment"] == 3


def test_activity_window_and_recent_limit(store, clock, reports):
    now = clock.now
    for days in (1, 3, 6, 8, 30):
        add_user(
            store,
            f"user{days}@example.com",
            UserRole.TENANT,
            created_at=now - timedelta(days=days),
        )
    # exactly on the cutoff is outside the window
    add_user(
        store, "edge@example.com", UserRole.TENANT, created_at=now - timedelta(days=7)
    )

    activity = asyncio.run(reports.get_activity_summary())
    assert activity.last_week.new_users == 3
    assert activity.totals.users == 6

    users = asyncio.run(reports.get_user_report())
    assert [u.email for u in users.recent_users] == [
        "user1@example.com",
        "user3@example.com",
    ]
    assert len(users.users_by_role["tenant"]) == 6
    assert users.users_by_role["admin"] == []


def test_full_report_is_stamped(clock, reports):
    report = asyncio.run(reports.get_full_report())
    assert report.generated_at == clock.now
    assert report.dashboard.total_users == 0


def test_reports_read_through_the_repos(monkeypatch, reports, landlord):
    listing = Property(title="p", address="a", price=1200, owner_id=landlord.id)

    async def only_listing():
        return [listing]

    monkeypatch.setattr(reports.property_repo, "get_all", only_listing)

    report = asyncio.run(reports.get_property_report())
    dashboard = asyncio.run(reports.get_dashboard())

    assert report.total_properties == 1
    assert report.average_price == 1200
    assert dashboard.total_properties == 1
    assert dashboard.total_users == 1
