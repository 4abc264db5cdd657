import logging
import uuid
from typing import Callable, Optional

from core.check_permission import CheckRolePermission
from core.date_helper import utc_now
from core.errors import HasActiveAgreements, InvalidInput, NotFound
from core.mapper import EntityMapper
from core.store import EntityStore
from models.enums import (
    PROPERTY_MANAGER_ROLES,
    ListingType,
    PropertyStatus,
)
from models.models import Property, User
from repos.property_repo import PropertyRepo
from repos.rental_agreement_repo import RentalAgreementRepo
from schemas.schema import (
    PropertyCreate,
    PropertyOut,
    PropertySearch,
    PropertyStatistics,
    PropertyUpdate,
)

logger = logging.getLogger(__name__)


class PropertyService:
    def __init__(self, store: EntityStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock
        self.repo: PropertyRepo = PropertyRepo(store)
        self.agreement_repo: RentalAgreementRepo = RentalAgreementRepo(store)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: EntityMapper = EntityMapper()

    async def _get_or_404(self, property_id: uuid.UUID) -> Property:
        prop = await self.repo.get_by_id(property_id)
        if not prop:
            raise NotFound("Property not found")
        return prop

    async def check_owner(self, property_id: uuid.UUID, current_user: User):
        prop = await self._get_or_404(property_id)
        await self.permission.check_owner_or_admin(
            prop.owner_id,
            current_user.id,
            current_user.role,
            "Not authorized to modify this property",
        )
        return prop

    async def create_property(self, data: PropertyCreate, current_user: User):
        await self.permission.check_roles(
            current_user.role,
            PROPERTY_MANAGER_ROLES,
            "Only landlords, agents and admins can list properties",
        )
        now = self.clock()
        prop = await self.repo.create(
            Property(
                **data.model_dump(),
                owner_id=current_user.id,
                status=PropertyStatus.AVAILABLE,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "property.created property_id=%s owner_id=%s", prop.id, prop.owner_id
        )
        return self.mapper.one(prop, PropertyOut)

    async def get_property(self, property_id: uuid.UUID):
        return self.mapper.one(await self._get_or_404(property_id), PropertyOut)

    async def get_all_properties(self):
        return self.mapper.many(await self.repo.get_all(), PropertyOut)

    async def get_properties_by_owner(self, owner_id: uuid.UUID):
        return self.mapper.many(await self.repo.get_all_by_owner(owner_id), PropertyOut)

    async def get_available_properties(self):
        return self.mapper.many(await self.repo.get_available(), PropertyOut)

    async def search_properties(self, filters: PropertySearch):
        return self.mapper.many(await self.repo.search(filters), PropertyOut)

    async def update_property(
        self, property_id: uuid.UUID, data: PropertyUpdate, current_user: User
    ):
        update_data = data.changes()
        if not update_data:
            raise InvalidInput("No fields provided for update.")

        async with self.store.locks.hold(f"property:{property_id}"):
            await self.check_owner(property_id, current_user)
            prop = await self.repo.update(property_id, update_data, self.clock())

        logger.info(
            "property.updated property_id=%s fields=%s",
            property_id,
            ",".join(sorted(update_data)),
        )
        return self.mapper.one(prop, PropertyOut)

    async def update_status(
        self, property_id: uuid.UUID, status: str, current_user: User
    ):
        async with self.store.locks.hold(f"property:{property_id}"):
            prop = await self.check_owner(property_id, current_user)
            prop.update_status(status, self.clock())

        logger.info(
            "property.status_changed property_id=%s status=%s",
            property_id,
            prop.status.value,
        )
        return self.mapper.one(prop, PropertyOut)

    async def add_amenity(
        self, property_id: uuid.UUID, amenity: str, current_user: User
    ):
        async with self.store.locks.hold(f"property:{property_id}"):
            prop = await self.check_owner(property_id, current_user)
            added = prop.add_amenity(amenity, self.clock())

        if added:
            logger.info("property.amenity_added property_id=%s", property_id)
        return self.mapper.one(prop, PropertyOut)

    async def add_image(
        self, property_id: uuid.UUID, image_url: str, current_user: User
    ):
        async with self.store.locks.hold(f"property:{property_id}"):
            prop = await self.check_owner(property_id, current_user)
            prop.add_image(image_url, self.clock())

        logger.info("property.image_added property_id=%s", property_id)
        return self.mapper.one(prop, PropertyOut)

    async def delete_property(self, property_id: uuid.UUID, current_user: User):
        async with self.store.locks.hold(f"property:{property_id}"):
            await self.check_owner(property_id, current_user)
            if await self.agreement_repo.has_active_for_property(property_id):
                raise HasActiveAgreements(
                    "Cannot delete property with active rental agreements"
                )
            await self.repo.delete_property(property_id)

        logger.info("property.deleted property_id=%s", property_id)
        return {"message": "Property deleted successfully"}

    async def get_statistics(self, owner_id: Optional[uuid.UUID] = None):
        properties = (
            await self.repo.get_all_by_owner(owner_id)
            if owner_id
            else await self.repo.get_all()
        )
        by_status = {status.value: 0 for status in PropertyStatus}
        for prop in properties:
            by_status[prop.status.value] += 1

        return PropertyStatistics(
            total=len(properties),
            **by_status,
            for_rent=sum(1 for p in properties if p.rent_or_sale == ListingType.RENT),
            for_sale=sum(1 for p in properties if p.rent_or_sale == ListingType.SALE),
            average_price=(
                sum(p.price for p in properties) / len(properties) if properties else 0
            ),
        )
