from typing import Iterable, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class EntityMapper:
    @staticmethod
    def one(item, schema: Type[T]) -> T:
        return schema.model_validate(item, from_attributes=True)

    @staticmethod
    def many(items: Iterable, schema: Type[T]) -> list[T]:
        return [schema.model_validate(item, from_attributes=True) for item in items]

    @staticmethod
    def recent(items: Iterable, schema: Type[T], limit: int) -> list[T]:
        ordered = sorted(items, key=lambda item: item.created_at, reverse=True)
        return [schema.model_validate(item, from_attributes=True) for item in ordered[:limit]]
