"""Rental agreement state machine.

    draft --send_for_signing--> pending --(both parties signed)--> active
    active --terminate--> terminated
    active --admin update(status=expired)--> expired

Each ``plan_*`` function checks its guards against the current agreement and
returns a :class:`Transition`: the agreement changes plus the commands for the
linked property and tenant profile. Nothing is written here. A guard failure
raises before any command exists, so a rejected call leaves every entity as it
was.

Activation is not tied to a particular signature. It is re-evaluated after
every signing call, which makes tenant-first and landlord-first signing end in
the same state with the same side effects.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple

from core.errors import InvalidTransition, NotAuthorized
from models.commands import (
    AppendRentalHistory,
    ClearCurrentRental,
    Command,
    SetCurrentRental,
    SetPropertyStatus,
    UpdateAgreement,
)
from models.enums import AgreementStatus, PropertyStatus, SigningParty, UserRole
from models.models import Property, RentalAgreement, RentalHistoryEntry, Tenant

EDITABLE_BY_PARTIES = {AgreementStatus.DRAFT, AgreementStatus.PENDING, AgreementStatus.EXPIRED}


@dataclass(frozen=True)
class Transition:
    agreement_id: uuid.UUID
    event: str
    from_status: AgreementStatus
    to_status: AgreementStatus
    commands: Tuple[Command, ...] = field(default_factory=tuple)

    @property
    def is_noop(self) -> bool:
        return not self.commands


def _require_status(agreement: RentalAgreement, expected: AgreementStatus, detail: str):
    if agreement.status != expected:
        raise InvalidTransition(detail)


def plan_send_for_signing(
    agreement: RentalAgreement, caller_id: uuid.UUID
) -> Transition:
    if agreement.landlord_id != caller_id:
        raise NotAuthorized("Only the landlord can send agreement for signing")
    _require_status(
        agreement,
        AgreementStatus.DRAFT,
        "Agreement must be in draft status to send for signing",
    )
    return Transition(
        agreement_id=agreement.id,
        event="agreement.sent_for_signing",
        from_status=agreement.status,
        to_status=AgreementStatus.PENDING,
        commands=(
            UpdateAgreement(agreement.id, {"status": AgreementStatus.PENDING}),
        ),
    )


def plan_signature(
    agreement: RentalAgreement,
    party: SigningParty,
    caller_id: uuid.UUID,
    now: datetime,
    prop: Optional[Property],
    tenant: Optional[Tenant],
) -> Transition:
    signer_id = (
        agreement.tenant_id if party == SigningParty.TENANT else agreement.landlord_id
    )
    if signer_id != caller_id:
        raise NotAuthorized("Not authorized to sign this agreement")
    _require_status(
        agreement,
        AgreementStatus.PENDING,
        "Agreement must be in pending status to sign",
    )

    flag = "signed_by_tenant" if party == SigningParty.TENANT else "signed_by_landlord"
    if getattr(agreement, flag):
        # signing twice while pending changes nothing
        return Transition(
            agreement_id=agreement.id,
            event=f"agreement.signed_by_{party.value}",
            from_status=agreement.status,
            to_status=agreement.status,
        )

    changes = {flag: True}

    if not replace(agreement, **changes).is_fully_signed():
        return Transition(
            agreement_id=agreement.id,
            event=f"agreement.signed_by_{party.value}",
            from_status=agreement.status,
            to_status=agreement.status,
            commands=(UpdateAgreement(agreement.id, changes),),
        )

    return plan_activation(agreement, changes, now, prop, tenant)


def plan_activation(
    agreement: RentalAgreement,
    changes: dict,
    now: datetime,
    prop: Optional[Property],
    tenant: Optional[Tenant],
) -> Transition:
    changes = {**changes, "status": AgreementStatus.ACTIVE, "signed_at": now}
    commands = [UpdateAgreement(agreement.id, changes)]
    if prop is not None:
        commands.append(SetPropertyStatus(prop.id, PropertyStatus.RENTED))
    if tenant is not None:
        commands.append(SetCurrentRental(tenant.id, agreement.property_id, agreement.id))

    return Transition(
        agreement_id=agreement.id,
        event="agreement.activated",
        from_status=agreement.status,
        to_status=AgreementStatus.ACTIVE,
        commands=tuple(commands),
    )


def _release_commands(
    agreement: RentalAgreement,
    now: datetime,
    prop: Optional[Property],
    tenant: Optional[Tenant],
) -> list:
    commands = []
    if prop is not None:
        commands.append(SetPropertyStatus(prop.id, PropertyStatus.AVAILABLE))
    if tenant is not None:
        commands.append(
            AppendRentalHistory(
                tenant.id,
                RentalHistoryEntry(
                    property_id=agreement.property_id,
                    agreement_id=agreement.id,
                    start_date=agreement.start_date,
                    end_date=now,
                    landlord_id=agreement.landlord_id,
                    added_at=now,
                ),
            )
        )
        # a tenant already moved on to another agreement keeps that pointer
        if tenant.current_agreement_id in (None, agreement.id):
            commands.append(ClearCurrentRental(tenant.id))
    return commands


def plan_termination(
    agreement: RentalAgreement,
    reason: Optional[str],
    caller_id: uuid.UUID,
    caller_role: UserRole,
    now: datetime,
    prop: Optional[Property],
    tenant: Optional[Tenant],
) -> Transition:
    if agreement.landlord_id != caller_id and caller_role != UserRole.ADMIN:
        raise NotAuthorized("Not authorized to terminate this agreement")
    _require_status(
        agreement,
        AgreementStatus.ACTIVE,
        "Only active agreements can be terminated",
    )

    changes = {
        "status": AgreementStatus.TERMINATED,
        "termination_reason": reason,
        "terminated_at": now,
    }
    commands = [UpdateAgreement(agreement.id, changes)]
    commands.extend(_release_commands(agreement, now, prop, tenant))

    return Transition(
        agreement_id=agreement.id,
        event="agreement.terminated",
        from_status=agreement.status,
        to_status=AgreementStatus.TERMINATED,
        commands=tuple(commands),
    )


def plan_update(
    agreement: RentalAgreement,
    changes: dict,
    caller_id: uuid.UUID,
    caller_role: UserRole,
    now: datetime,
    prop: Optional[Property],
    tenant: Optional[Tenant],
) -> Transition:
    is_admin = caller_role == UserRole.ADMIN
    if not (
        is_admin or caller_id in (agreement.landlord_id, agreement.tenant_id)
    ):
        raise NotAuthorized("Not authorized to update this agreement")

    if agreement.status not in EDITABLE_BY_PARTIES and not is_admin:
        raise InvalidTransition("Cannot modify active or terminated agreements")

    changes = dict(changes)
    new_status = changes.pop("status", None)
    if new_status is None:
        return Transition(
            agreement_id=agreement.id,
            event="agreement.updated",
            from_status=agreement.status,
            to_status=agreement.status,
            commands=(UpdateAgreement(agreement.id, changes),),
        )

    if not is_admin:
        raise NotAuthorized("Only admins can expire agreements")
    _require_status(
        agreement, AgreementStatus.ACTIVE, "Only active agreements can expire"
    )

    changes["status"] = AgreementStatus.EXPIRED
    commands = [UpdateAgreement(agreement.id, changes)]
    commands.extend(_release_commands(agreement, now, prop, tenant))
    return Transition(
        agreement_id=agreement.id,
        event="agreement.expired",
        from_status=agreement.status,
        to_status=AgreementStatus.EXPIRED,
        commands=tuple(commands),
    )


def check_deletable(agreement: RentalAgreement, caller_role: UserRole) -> None:
    if caller_role != UserRole.ADMIN:
        raise NotAuthorized("Only admins can delete agreements")
    _require_status(
        agreement, AgreementStatus.DRAFT, "Only draft agreements can be deleted"
    )
