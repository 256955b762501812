# competency/infrastructure/repositories_dimension.py
from __future__ import annotations

import builtins
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..domain.models import Dimension
from .exceptions import DimensionNotFoundError, ValidationError
from .logging import log_database_operation as log_op
from .models import DimensionORM, DimensionWeightBindingORM
from .repositories_base import BaseRepository as GenericBaseRepository


def _dimension_fields(dimension: Dimension) -> dict[str, Any]:
    return {
        "name": dimension.name,
        "description": dimension.description,
        "category": dimension.category.value,
        "scale_family": dimension.scale_family.value,
        "min_value": dimension.min_value,
        "max_value": dimension.max_value,
        "labels": {str(k): v for k, v in dimension.labels.items()},
        "display_weight": dimension.display_weight,
        "display_order": dimension.display_order,
        "active": dimension.active,
        "system_protected": dimension.system_protected,
    }


class DimensionRepo(GenericBaseRepository[DimensionORM]):
    """
    Repository for dimension rows.

    Example:
        >>> repo = DimensionRepo(session)
        >>> row = repo.get_by_name("Teamwork")
        >>> if row:
        ...     print(f"Found: {row.name} [{row.min_value}, {row.max_value}]")
    """

    model = DimensionORM
    not_found = DimensionNotFoundError

    @log_op("dimension.get")
    def get(self, id_: Any) -> DimensionORM | None:
        return super().get(id_)

    @log_op("dimension.get_by_name")
    def get_by_name(self, name: str) -> DimensionORM | None:
        if not name or not name.strip():
            raise ValidationError("name", "Dimension name cannot be empty")

        try:
            return self.s.query(DimensionORM).filter_by(name=name.strip()).one_or_none()
        except SQLAlchemyError as e:
            self._handle_error(e, "get_dimension_by_name")

    @log_op("dimension.list")
    def list(
        self,
        *filters: Any,
        order_by: Iterable[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> builtins.list[DimensionORM]:
        if order_by is None:
            order_by = [DimensionORM.display_order, DimensionORM.name]
        return super().list(*filters, order_by=order_by, limit=limit, offset=offset)

    def list_active(self) -> builtins.list[DimensionORM]:
        return self.list(DimensionORM.active.is_(True))

    @log_op("dimension.add")
    def add(self, dimension: Dimension) -> DimensionORM:
        """
        Insert a dimension snapshot.

        Raises:
            IntegrityError: If a dimension with the same name exists
        """
        try:
            return super().create(**_dimension_fields(dimension))
        except SQLAlchemyError as e:
            self._handle_error(e, "create_dimension")

    @log_op("dimension.save")
    def save(self, dimension: Dimension) -> DimensionORM:
        """Write a changed snapshot back onto its existing row."""
        row = self.get_by_id_required(dimension.id)
        try:
            return super().update(row, **_dimension_fields(dimension))
        except SQLAlchemyError as e:
            self._handle_error(e, "update_dimension")

    @log_op("dimension.is_bound")
    def is_bound(self, dimension_id: int) -> bool:
        """True when any success profile binds the dimension."""
        q = self.s.query(DimensionWeightBindingORM).filter_by(dimension_id=dimension_id)
        return bool(self.s.query(q.exists()).scalar())
