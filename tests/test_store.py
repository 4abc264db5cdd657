import asyncio
import uuid
from dataclasses import asdict

import pytest

from core.entity_locks import EntityLocks
from core.errors import AlreadyExists, InvalidInput, NotFound
from models.commands import SetCurrentRental, SetPropertyStatus, UpdateAgreement
from models.enums import AgreementStatus, PropertyStatus, UserRole

from conftest import add_user


def test_collection_basics(store, landlord, listed_property):
    assert len(store.properties) == 1
    assert listed_property.id in store.properties
    assert store.properties.get(uuid.uuid4()) is None
    assert store.users.get_by_email(" LANDLORD@example.com") is landlord

    with pytest.raises(AlreadyExists):
        store.properties.create(listed_property)


def test_update_rejects_unknown_fields(store, listed_property):
    with pytest.raises(InvalidInput):
        store.properties.update(listed_property.id, {"colour": "red"})
    with pytest.raises(InvalidInput):
        store.properties.update(listed_property.id, {"id": uuid.uuid4()})

    assert store.properties.update(uuid.uuid4(), {"price": 1}) is None


def test_delete_and_clear(store, landlord, listed_property):
    assert store.properties.delete(listed_property.id)
    assert not store.properties.delete(listed_property.id)

    add_user(store, "x@example.com", UserRole.AGENT)
    store.clear()
    assert len(store.users) == 0


def test_apply_writes_every_command(store, clock, tenant_profile, draft_agreement):
    store.apply(
        [
            UpdateAgreement(draft_agreement.id, {"status": AgreementStatus.ACTIVE}),
            SetPropertyStatus(draft_agreement.property_id, PropertyStatus.RENTED),
            SetCurrentRental(
                tenant_profile.id, draft_agreement.property_id, draft_agreement.id
            ),
        ],
        clock.now,
    )

    agreement = store.agreements.get(draft_agreement.id)
    assert agreement.status == AgreementStatus.ACTIVE
    assert agreement.updated_at == clock.now
    assert store.properties.get(agreement.property_id).status == PropertyStatus.RENTED
    assert tenant_profile.current_agreement_id == agreement.id


def test_apply_with_missing_target_writes_nothing(
    store, clock, tenant_profile, draft_agreement
):
    before = asdict(store.agreements.get(draft_agreement.id))

    with pytest.raises(NotFound):
        store.apply(
            [
                UpdateAgreement(draft_agreement.id, {"status": AgreementStatus.ACTIVE}),
                SetPropertyStatus(uuid.uuid4(), PropertyStatus.RENTED),
            ],
            clock.now,
        )

    assert asdict(store.agreements.get(draft_agreement.id)) == before


def test_locks_serialize_same_key_and_clean_up():
    locks = EntityLocks(namespace="test")
    order = []

    async def worker(name, keys):
        async with locks.hold(*keys):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    async def main():
        await asyncio.gather(worker("a", ["x", "y"]), worker("b", ["y", "x"]))

    asyncio.run(main())

    assert order in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )
    assert locks._locks == {}
