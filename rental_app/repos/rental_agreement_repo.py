import uuid
from typing import List, Optional

from core.store import EntityStore
from models.enums import AgreementStatus
from models.models import RentalAgreement


class RentalAgreementRepo:
    def __init__(self, store: EntityStore):
        self.store = store
        self.agreements = store.agreements

    async def get_by_id(self, agreement_id: uuid.UUID) -> Optional[RentalAgreement]:
        return self.agreements.get(agreement_id)

    async def get_all(self) -> List[RentalAgreement]:
        return self.agreements.get_all()

    async def get_by_tenant(self, tenant_id: uuid.UUID) -> List[RentalAgreement]:
        return self.agreements.get_by_predicate(lambda a: a.tenant_id == tenant_id)

    async def get_by_landlord(self, landlord_id: uuid.UUID) -> List[RentalAgreement]:
        return self.agreements.get_by_predicate(
            lambda a: a.landlord_id == landlord_id
        )

    async def get_by_property(self, property_id: uuid.UUID) -> List[RentalAgreement]:
        return self.agreements.get_by_predicate(
            lambda a: a.property_id == property_id
        )

    async def get_active(self) -> List[RentalAgreement]:
        return self.agreements.get_by_predicate(
            lambda a: a.status == AgreementStatus.ACTIVE
        )

    async def has_active_for_property(self, property_id: uuid.UUID) -> bool:
        return bool(
            self.agreements.get_by_predicate(
                lambda a: a.property_id == property_id
                and a.status == AgreementStatus.ACTIVE
            )
        )

    async def create(self, agreement: RentalAgreement) -> RentalAgreement:
        return self.agreements.create(agreement)

    async def delete(self, agreement_id: uuid.UUID) -> bool:
        return self.agreements.delete(agreement_id)
