import uuid
from datetime import date, datetime, timezone

import pytest

from core.errors import InvalidTransition, NotAuthorized
from models.commands import (
    AppendRentalHistory,
    ClearCurrentRental,
    SetCurrentRental,
    SetPropertyStatus,
    UpdateAgreement,
)
from models.enums import AgreementStatus, PropertyStatus, SigningParty, UserRole
from models.models import Property, RentalAgreement, Tenant
from services import agreement_lifecycle as lifecycle

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def landlord_id():
    return uuid.uuid4()


@pytest.fixture
def tenant_id():
    return uuid.uuid4()


@pytest.fixture
def prop(landlord_id):
    return Property(title="Loft", address="3 Mill Lane", price=1500, owner_id=landlord_id)


@pytest.fixture
def tenant(tenant_id):
    return Tenant(user_id=tenant_id)


def make_agreement(prop, tenant_id, landlord_id, status, **flags):
    return RentalAgreement(
        property_id=prop.id,
        tenant_id=tenant_id,
        landlord_id=landlord_id,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        monthly_rent=1500,
        status=status,
        **flags,
    )


def test_send_for_signing_requires_the_landlord(prop, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.DRAFT)

    with pytest.raises(NotAuthorized):
        lifecycle.plan_send_for_signing(agreement, tenant_id)

    transition = lifecycle.plan_send_for_signing(agreement, landlord_id)
    assert transition.to_status == AgreementStatus.PENDING
    assert transition.commands == (
        UpdateAgreement(agreement.id, {"status": AgreementStatus.PENDING}),
    )


@pytest.mark.parametrize(
    "status",
    [AgreementStatus.PENDING, AgreementStatus.ACTIVE, AgreementStatus.TERMINATED],
)
def test_send_for_signing_only_from_draft(prop, tenant_id, landlord_id, status):
    agreement = make_agreement(prop, tenant_id, landlord_id, status)
    with pytest.raises(InvalidTransition):
        lifecycle.plan_send_for_signing(agreement, landlord_id)


def test_first_signature_only_sets_the_flag(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.PENDING)

    transition = lifecycle.plan_signature(
        agreement, SigningParty.TENANT, tenant_id, NOW, prop, tenant
    )

    assert transition.to_status == AgreementStatus.PENDING
    assert transition.commands == (
        UpdateAgreement(agreement.id, {"signed_by_tenant": True}),
    )
    # planning never writes
    assert agreement.signed_by_tenant is False


def test_second_signature_activates_with_side_effects(
    prop, tenant, tenant_id, landlord_id
):
    agreement = make_agreement(
        prop, tenant_id, landlord_id, AgreementStatus.PENDING, signed_by_landlord=True
    )

    transition = lifecycle.plan_signature(
        agreement, SigningParty.TENANT, tenant_id, NOW, prop, tenant
    )

    assert transition.event == "agreement.activated"
    assert transition.to_status == AgreementStatus.ACTIVE
    assert transition.commands == (
        UpdateAgreement(
            agreement.id,
            {
                "signed_by_tenant": True,
                "status": AgreementStatus.ACTIVE,
                "signed_at": NOW,
            },
        ),
        SetPropertyStatus(prop.id, PropertyStatus.RENTED),
        SetCurrentRental(tenant.id, prop.id, agreement.id),
    )
    # the merged flags are checked on a copy
    assert not agreement.is_fully_signed()
    assert agreement.status == AgreementStatus.PENDING


def test_activation_without_tenant_profile_skips_pointer(prop, tenant_id, landlord_id):
    agreement = make_agreement(
        prop, tenant_id, landlord_id, AgreementStatus.PENDING, signed_by_tenant=True
    )

    transition = lifecycle.plan_signature(
        agreement, SigningParty.LANDLORD, landlord_id, NOW, prop, None
    )

    assert transition.to_status == AgreementStatus.ACTIVE
    assert not any(isinstance(c, SetCurrentRental) for c in transition.commands)


def test_repeat_signature_while_pending_is_noop(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(
        prop, tenant_id, landlord_id, AgreementStatus.PENDING, signed_by_tenant=True
    )

    transition = lifecycle.plan_signature(
        agreement, SigningParty.TENANT, tenant_id, NOW, prop, tenant
    )

    assert transition.is_noop


def test_signing_wrong_party_is_rejected(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.PENDING)

    with pytest.raises(NotAuthorized):
        lifecycle.plan_signature(
            agreement, SigningParty.LANDLORD, tenant_id, NOW, prop, tenant
        )
    with pytest.raises(NotAuthorized):
        lifecycle.plan_signature(
            agreement, SigningParty.TENANT, landlord_id, NOW, prop, tenant
        )


def test_signing_after_activation_is_rejected(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(
        prop,
        tenant_id,
        landlord_id,
        AgreementStatus.ACTIVE,
        signed_by_tenant=True,
        signed_by_landlord=True,
    )

    with pytest.raises(InvalidTransition):
        lifecycle.plan_signature(
            agreement, SigningParty.TENANT, tenant_id, NOW, prop, tenant
        )


def test_termination_releases_property_and_records_history(
    prop, tenant, tenant_id, landlord_id
):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.ACTIVE)
    tenant.current_property_id = prop.id
    tenant.current_agreement_id = agreement.id

    transition = lifecycle.plan_termination(
        agreement, "violation", landlord_id, UserRole.LANDLORD, NOW, prop, tenant
    )

    update, set_status, history, clear = transition.commands
    assert update == UpdateAgreement(
        agreement.id,
        {
            "status": AgreementStatus.TERMINATED,
            "termination_reason": "violation",
            "terminated_at": NOW,
        },
    )
    assert set_status == SetPropertyStatus(prop.id, PropertyStatus.AVAILABLE)
    assert isinstance(history, AppendRentalHistory)
    assert history.entry.start_date == agreement.start_date
    assert history.entry.end_date == NOW
    assert history.entry.landlord_id == landlord_id
    assert clear == ClearCurrentRental(tenant.id)


def test_termination_keeps_pointer_to_a_newer_agreement(
    prop, tenant, tenant_id, landlord_id
):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.ACTIVE)
    tenant.current_property_id = uuid.uuid4()
    tenant.current_agreement_id = uuid.uuid4()

    transition = lifecycle.plan_termination(
        agreement, None, landlord_id, UserRole.LANDLORD, NOW, prop, tenant
    )

    assert not any(isinstance(c, ClearCurrentRental) for c in transition.commands)
    assert any(isinstance(c, AppendRentalHistory) for c in transition.commands)


def test_termination_guards(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.PENDING)

    with pytest.raises(InvalidTransition):
        lifecycle.plan_termination(
            agreement, None, landlord_id, UserRole.LANDLORD, NOW, prop, tenant
        )

    agreement.status = AgreementStatus.ACTIVE
    with pytest.raises(NotAuthorized):
        lifecycle.plan_termination(
            agreement, None, tenant_id, UserRole.TENANT, NOW, prop, tenant
        )

    transition = lifecycle.plan_termination(
        agreement, None, uuid.uuid4(), UserRole.ADMIN, NOW, prop, tenant
    )
    assert transition.to_status == AgreementStatus.TERMINATED


def test_update_rules(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.DRAFT)

    transition = lifecycle.plan_update(
        agreement, {"terms": "Quiet hours"}, tenant_id, UserRole.TENANT, NOW, prop, tenant
    )
    assert transition.commands == (
        UpdateAgreement(agreement.id, {"terms": "Quiet hours"}),
    )

    with pytest.raises(NotAuthorized):
        lifecycle.plan_update(
            agreement, {"terms": "x"}, uuid.uuid4(), UserRole.LANDLORD, NOW, prop, tenant
        )

    agreement.status = AgreementStatus.ACTIVE
    with pytest.raises(InvalidTransition):
        lifecycle.plan_update(
            agreement, {"terms": "x"}, landlord_id, UserRole.LANDLORD, NOW, prop, tenant
        )
    lifecycle.plan_update(
        agreement, {"terms": "x"}, uuid.uuid4(), UserRole.ADMIN, NOW, prop, tenant
    )


def test_expiry_is_admin_only_and_from_active(prop, tenant, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.PENDING)
    changes = {"status": AgreementStatus.EXPIRED}

    with pytest.raises(NotAuthorized):
        lifecycle.plan_update(
            agreement, changes, landlord_id, UserRole.LANDLORD, NOW, prop, tenant
        )
    with pytest.raises(InvalidTransition):
        lifecycle.plan_update(
            agreement, changes, uuid.uuid4(), UserRole.ADMIN, NOW, prop, tenant
        )

    agreement.status = AgreementStatus.ACTIVE
    transition = lifecycle.plan_update(
        agreement, changes, uuid.uuid4(), UserRole.ADMIN, NOW, prop, tenant
    )
    assert transition.to_status == AgreementStatus.EXPIRED
    assert SetPropertyStatus(prop.id, PropertyStatus.AVAILABLE) in transition.commands


def test_only_admin_deletes_drafts(prop, tenant_id, landlord_id):
    agreement = make_agreement(prop, tenant_id, landlord_id, AgreementStatus.DRAFT)

    with pytest.raises(NotAuthorized):
        lifecycle.check_deletable(agreement, UserRole.LANDLORD)
    lifecycle.check_deletable(agreement, UserRole.ADMIN)

    agreement.status = AgreementStatus.PENDING
    with pytest.raises(InvalidTransition):
        lifecycle.check_deletable(agreement, UserRole.ADMIN)
