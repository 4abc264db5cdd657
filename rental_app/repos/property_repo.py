import uuid
from typing import List, Optional

from core.store import EntityStore
from models.enums import PropertyStatus
from models.models import Property


class PropertyRepo:
    def __init__(self, store: EntityStore):
        self.store = store
        self.properties = store.properties

    async def get_by_id(self, property_id: uuid.UUID) -> Optional[Property]:
        return self.properties.get(property_id)

    async def get_all(self) -> List[Property]:
        return self.properties.get_all()

    async def get_all_by_owner(self, owner_id: uuid.UUID) -> List[Property]:
        return self.properties.get_by_predicate(lambda p: p.owner_id == owner_id)

    async def get_available(self) -> List[Property]:
        return self.properties.get_by_predicate(
            lambda p: p.status == PropertyStatus.AVAILABLE
        )

    async def search(self, filters) -> List[Property]:
        results = self.properties.get_all()

        if filters.city:
            city = filters.city.lower()
            results = [p for p in results if p.city and city in p.city.lower()]
        if filters.state:
            state = filters.state.lower()
            results = [p for p in results if p.state and state in p.state.lower()]
        if filters.property_type:
            results = [p for p in results if p.property_type == filters.property_type]
        if filters.min_price is not None:
            results = [p for p in results if p.price >= filters.min_price]
        if filters.max_price is not None:
            results = [p for p in results if p.price <= filters.max_price]
        if filters.bedrooms is not None:
            results = [p for p in results if p.bedrooms >= filters.bedrooms]
        if filters.rent_or_sale:
            results = [p for p in results if p.rent_or_sale == filters.rent_or_sale]
        if filters.status:
            results = [p for p in results if p.status == filters.status]

        return results

    async def create(self, prop: Property) -> Property:
        return self.properties.create(prop)

    async def update(
        self, property_id: uuid.UUID, fields: dict, now=None
    ) -> Optional[Property]:
        return self.properties.update(property_id, fields, now)

    async def delete_property(self, property_id: uuid.UUID) -> bool:
        return self.properties.delete(property_id)
