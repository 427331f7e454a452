"""Small query manager exposed as `Model.objects` on table models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class ModelQuery(Generic[ModelT]):
    """Immutable, chainable query description bound to one model."""

    model: type[ModelT]
    criteria: tuple[ColumnElement[bool], ...] = ()
    ordering: tuple[Any, ...] = field(default=())

    def filter(self, *criteria: ColumnElement[bool]) -> ModelQuery[ModelT]:
        return ModelQuery(self.model, self.criteria + criteria, self.ordering)

    def filter_by(self, **values: object) -> ModelQuery[ModelT]:
        criteria = tuple(col(getattr(self.model, key)) == value for key, value in values.items())
        return self.filter(*criteria)

    def order_by(self, *ordering: Any) -> ModelQuery[ModelT]:
        return ModelQuery(self.model, self.criteria, self.ordering + ordering)

    @property
    def statement(self) -> Any:
        stmt = select(self.model)
        for criterion in self.criteria:
            stmt = stmt.where(criterion)
        if self.ordering:
            stmt = stmt.order_by(*self.ordering)
        return stmt

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement)).first()


class ModelManager(Generic[ModelT]):
    """Descriptor entry point for model-level queries."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> ModelQuery[ModelT]:
        return ModelQuery(self.model)

    def filter_by(self, **values: object) -> ModelQuery[ModelT]:
        return ModelQuery(self.model).filter_by(**values)

    def by_id(self, obj_id: object) -> ModelQuery[ModelT]:
        return self.filter_by(id=obj_id)
