import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from fastapi import Request

from models.commands import (
    AppendRentalHistory,
    ClearCurrentRental,
    Command,
    SetCurrentRental,
    SetPropertyStatus,
    UpdateAgreement,
)
from models.models import Property, RentalAgreement, Tenant, User

from .date_helper import utc_now
from .entity_locks import EntityLocks
from .errors import AlreadyExists, InvalidInput, NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Collection(Generic[T]):
    """Keyed collection holding the canonical copy of each entity.

    Reads hand out the stored objects themselves; callers mutate in place.
    """

    def __init__(self, name: str):
        self.name = name
        self._items: Dict[uuid.UUID, T] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return item_id in self._items

    def get(self, item_id: uuid.UUID) -> Optional[T]:
        return self._items.get(item_id)

    def get_all(self) -> List[T]:
        return list(self._items.values())

    def get_by_predicate(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self._items.values() if predicate(item)]

    def first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        return next((item for item in self._items.values() if predicate(item)), None)

    def create(self, item: T) -> T:
        if item.id in self._items:
            raise AlreadyExists(f"{self.name} {item.id} already exists")
        self._items[item.id] = item
        return item

    def update(
        self, item_id: uuid.UUID, fields: dict, now: datetime | None = None
    ) -> Optional[T]:
        item = self._items.get(item_id)
        if item is None:
            return None
        unknown = [key for key in fields if not hasattr(item, key)]
        if unknown or "id" in fields:
            raise InvalidInput(f"Unknown {self.name} fields: {', '.join(unknown)}")
        for key, value in fields.items():
            setattr(item, key, value)
        item.updated_at = now or utc_now()
        return item

    def delete(self, item_id: uuid.UUID) -> bool:
        return self._items.pop(item_id, None) is not None

    def clear(self) -> None:
        self._items.clear()


class UserCollection(Collection[User]):
    def get_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return self.first(lambda user: user.email == email)


class TenantCollection(Collection[Tenant]):
    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Tenant]:
        return self.first(lambda tenant: tenant.user_id == user_id)


class EntityStore:
    def __init__(self):
        self.users = UserCollection("User")
        self.properties: Collection[Property] = Collection("Property")
        self.agreements: Collection[RentalAgreement] = Collection("RentalAgreement")
        self.tenants = TenantCollection("Tenant")
        self.locks = EntityLocks(namespace="store")

    def apply(self, commands: Iterable[Command], now: datetime | None = None):
        """Run a batch of side-effect commands.

        Every target is resolved before the first write; a missing target
        fails the whole batch with nothing applied.
        """
        now = now or utc_now()
        commands = list(commands)
        resolved = [(command, self._target(command)) for command in commands]

        for command, target in resolved:
            if isinstance(command, UpdateAgreement):
                for key, value in command.changes.items():
                    setattr(target, key, value)
                target.updated_at = now
            elif isinstance(command, SetPropertyStatus):
                target.update_status(command.status, now)
            elif isinstance(command, SetCurrentRental):
                target.update_current_rental(
                    command.property_id, command.agreement_id, now
                )
            elif isinstance(command, AppendRentalHistory):
                target.add_rental_history(command.entry, now)
            elif isinstance(command, ClearCurrentRental):
                target.clear_current_rental(now)
            logger.debug("Applied %s", command)

        return commands

    def _target(self, command: Command):
        if isinstance(command, UpdateAgreement):
            collection, item_id = self.agreements, command.agreement_id
        elif isinstance(command, SetPropertyStatus):
            collection, item_id = self.properties, command.property_id
        elif isinstance(
            command, (SetCurrentRental, AppendRentalHistory, ClearCurrentRental)
        ):
            collection, item_id = self.tenants, command.tenant_id
        else:
            raise InvalidInput(f"Unsupported command {type(command).__name__}")

        target = collection.get(item_id)
        if target is None:
            raise NotFound(f"{collection.name} not found")
        return target

    def clear(self) -> None:
        for collection in (self.users, self.properties, self.agreements, self.tenants):
            collection.clear()


def get_store(request: Request) -> EntityStore:
    return request.app.state.store
