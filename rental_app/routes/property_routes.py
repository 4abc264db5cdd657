import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv

from core.get_current_user import get_current_user, require_roles
from core.safe_handler import safe_handler
from core.store import EntityStore, get_store
from core.throttling import rate_limit
from models.enums import (
    ListingType,
    PropertyStatus,
    PropertyTypes,
    UserRole,
)
from models.models import User
from schemas.schema import (
    AmenityIn,
    ImageIn,
    MessageOut,
    PropertyCreate,
    PropertyOut,
    PropertySearch,
    PropertyStatistics,
    PropertyStatusUpdate,
    PropertyUpdate,
)
from services.property_service import PropertyService

router = APIRouter(tags=["Property Management"])

property_managers = require_roles(UserRole.LANDLORD, UserRole.ADMIN, UserRole.AGENT)


@cbv(router=router)
class PropertyRoutes:
    @router.get("/", response_model=list[PropertyOut], dependencies=[rate_limit])
    @safe_handler
    async def get_all(self, store: EntityStore = Depends(get_store)):
        return await PropertyService(store).get_all_properties()

    @router.get(
        "/available", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def get_available(self, store: EntityStore = Depends(get_store)):
        return await PropertyService(store).get_available_properties()

    @router.get("/search", response_model=list[PropertyOut], dependencies=[rate_limit])
    @safe_handler
    async def search(
        self,
        city: Optional[str] = None,
        state: Optional[str] = None,
        property_type: Optional[PropertyTypes] = Query(None, alias="propertyType"),
        min_price: Optional[float] = Query(None, alias="minPrice"),
        max_price: Optional[float] = Query(None, alias="maxPrice"),
        bedrooms: Optional[int] = None,
        rent_or_sale: Optional[ListingType] = Query(None, alias="rentOrSale"),
        status: Optional[PropertyStatus] = None,
        store: EntityStore = Depends(get_store),
    ):
        filters = PropertySearch(
            city=city,
            state=state,
            property_type=property_type,
            min_price=min_price,
            max_price=max_price,
            bedrooms=bedrooms,
            rent_or_sale=rent_or_sale,
            status=status,
        )
        return await PropertyService(store).search_properties(filters)

    @router.get(
        "/my/properties", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def get_mine(
        self,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).get_properties_by_owner(current_user.id)

    @router.get(
        "/my/statistics", response_model=PropertyStatistics, dependencies=[rate_limit]
    )
    @safe_handler
    async def get_my_statistics(
        self,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        owner_id = None if current_user.role == UserRole.ADMIN else current_user.id
        return await PropertyService(store).get_statistics(owner_id)

    @router.get(
        "/owner/{owner_id}", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def get_by_owner(
        self,
        owner_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(get_current_user),
    ):
        return await PropertyService(store).get_properties_by_owner(owner_id)

    @router.get("/{property_id}", response_model=PropertyOut, dependencies=[rate_limit])
    @safe_handler
    async def get_one(
        self,
        property_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
    ):
        return await PropertyService(store).get_property(property_id)

    @router.post(
        "/", status_code=201, response_model=PropertyOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def create(
        self,
        data: PropertyCreate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(property_managers),
    ):
        return await PropertyService(store).create_property(data, current_user)

    @router.put("/{property_id}", response_model=PropertyOut, dependencies=[rate_limit])
    @safe_handler
    async def update(
        self,
        property_id: uuid.UUID,
        data: PropertyUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).update_property(
            property_id, data, current_user
        )

    @router.patch(
        "/{property_id}/status", response_model=PropertyOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def update_status(
        self,
        property_id: uuid.UUID,
        data: PropertyStatusUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).update_status(
            property_id, data.status, current_user
        )

    @router.post(
        "/{property_id}/amenities", response_model=PropertyOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def add_amenity(
        self,
        property_id: uuid.UUID,
        data: AmenityIn,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).add_amenity(
            property_id, data.amenity, current_user
        )

    @router.post(
        "/{property_id}/images", response_model=PropertyOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def add_image(
        self,
        property_id: uuid.UUID,
        data: ImageIn,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).add_image(
            property_id, data.image_url, current_user
        )

    @router.delete(
        "/{property_id}", response_model=MessageOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def delete_property(
        self,
        property_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(store).delete_property(property_id, current_user)
