import uuid
from typing import List, Optional

from core.store import EntityStore
from models.models import Tenant


class TenantRepo:
    def __init__(self, store: EntityStore):
        self.store = store
        self.tenants = store.tenants

    async def get_by_id(self, tenant_id: uuid.UUID) -> Optional[Tenant]:
        return self.tenants.get(tenant_id)

    async def get_by_user(self, user_id: uuid.UUID) -> Tenant | None:
        return self.tenants.get_by_user_id(user_id)

    async def tenant_exists(self, user_id: uuid.UUID) -> bool:
        return self.tenants.get_by_user_id(user_id) is not None

    async def get_all(self) -> List[Tenant]:
        return self.tenants.get_all()

    async def search(self, filters) -> List[Tenant]:
        results = self.tenants.get_all()

        if filters.employment_status:
            results = [
                t for t in results if t.employment_status == filters.employment_status
            ]
        if filters.min_income is not None:
            results = [t for t in results if t.annual_income >= filters.min_income]
        if filters.max_income is not None:
            results = [t for t in results if t.annual_income <= filters.max_income]
        if filters.has_active_rental is not None:
            results = [
                t
                for t in results
                if t.has_active_rental() == filters.has_active_rental
            ]

        return results

    async def create(self, tenant: Tenant) -> Tenant:
        return self.tenants.create(tenant)

    async def update(
        self, tenant_id: uuid.UUID, fields: dict, now=None
    ) -> Optional[Tenant]:
        return self.tenants.update(tenant_id, fields, now)

    async def delete(self, tenant_id: uuid.UUID) -> bool:
        return self.tenants.delete(tenant_id)
