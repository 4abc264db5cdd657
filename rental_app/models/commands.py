"""Side-effect commands produced by agreement transitions.

A transition never touches the store itself. It returns the list of commands
below and ``EntityStore.apply`` executes the whole batch at once, so the
cross-entity contract of a transition can be asserted without a store.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from .enums import PropertyStatus
from .models import RentalHistoryEntry


@dataclass(frozen=True)
class UpdateAgreement:
    agreement_id: uuid.UUID
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SetPropertyStatus:
    property_id: uuid.UUID
    status: PropertyStatus


@dataclass(frozen=True)
class SetCurrentRental:
    tenant_id: uuid.UUID
    property_id: uuid.UUID
    agreement_id: uuid.UUID


@dataclass(frozen=True)
class AppendRentalHistory:
    tenant_id: uuid.UUID
    entry: RentalHistoryEntry


@dataclass(frozen=True)
class ClearCurrentRental:
    tenant_id: uuid.UUID


Command = Union[
    UpdateAgreement,
    SetPropertyStatus,
    SetCurrentRental,
    AppendRentalHistory,
    ClearCurrentRental,
]
