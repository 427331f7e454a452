"""Shared SQLModel base class with an `objects` query manager."""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

from sqlmodel import SQLModel

from payroll.db.query_manager import ModelManager

ModelT = TypeVar("ModelT", bound=SQLModel)


class ManagerDescriptor(Generic[ModelT]):
    """Return a `ModelManager` bound to whichever class it is accessed on."""

    def __get__(self, instance: object, owner: type[ModelT]) -> ModelManager[ModelT]:
        return ModelManager(owner)


class QueryModel(SQLModel, table=False):
    """Base for table models exposing `Model.objects` query helpers."""

    objects: ClassVar[ManagerDescriptor[Any]] = ManagerDescriptor()
