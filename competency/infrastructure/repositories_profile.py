# competency/infrastructure/repositories_profile.py
from __future__ import annotations

import builtins
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..domain.models import DimensionWeightBinding, SuccessProfile
from .exceptions import ProfileNotFoundError
from .logging import log_database_operation as log_op
from .models import DimensionWeightBindingORM, SuccessProfileORM
from .repositories_base import BaseRepository as GenericBaseRepository


def _binding_fields(binding: DimensionWeightBinding) -> dict[str, Any]:
    return {
        "dimension_id": binding.dimension_id,
        "weight": binding.weight,
        "min_score": binding.min_score,
        "target_score": binding.target_score,
        "is_critical": binding.is_critical,
        "active": binding.active,
        "notes": binding.notes,
        "display_order": binding.display_order,
    }


class ProfileRepo(GenericBaseRepository[SuccessProfileORM]):
    """
    Repository for success profiles and the bindings they own.

    Bindings are written through ``sync_bindings``, which reconciles the rows
    with a profile snapshot produced by the pure binding functions.
    """

    model = SuccessProfileORM
    not_found = ProfileNotFoundError

    @log_op("profile.get")
    def get(self, id_: Any) -> SuccessProfileORM | None:
        return (
            self.s.query(SuccessProfileORM)
            .options(selectinload(SuccessProfileORM.bindings))
            .filter(SuccessProfileORM.id == id_)
            .one_or_none()
        )

    @log_op("profile.list_active")
    def list_active(self) -> builtins.list[SuccessProfileORM]:
        return self.list(
            SuccessProfileORM.active.is_(True),
            order_by=[SuccessProfileORM.name],
        )

    @log_op("profile.list_using_dimension")
    def list_using_dimension(self, dimension_id: int) -> builtins.list[SuccessProfileORM]:
        """Profiles with any binding, active or not, on the dimension."""
        return (
            self.s.query(SuccessProfileORM)
            .join(SuccessProfileORM.bindings)
            .filter(DimensionWeightBindingORM.dimension_id == dimension_id)
            .order_by(SuccessProfileORM.id)
            .all()
        )

    @log_op("profile.add")
    def add(self, profile: SuccessProfile) -> SuccessProfileORM:
        try:
            return super().create(
                name=profile.name,
                description=profile.description,
                scope=profile.scope.value,
                min_success_score=profile.min_success_score,
                target_success_score=profile.target_success_score,
                position_id=profile.position_id,
                department_id=profile.department_id,
                active=profile.active,
                system_protected=profile.system_protected,
            )
        except SQLAlchemyError as e:
            self._handle_error(e, "create_profile")

    @log_op("profile.sync_bindings")
    def sync_bindings(self, row: SuccessProfileORM, profile: SuccessProfile) -> SuccessProfileORM:
        """
        Make the profile's binding rows match ``profile.bindings``.

        Rows for unbound dimensions are deleted, existing rows are updated in
        place and new bindings are inserted.
        """
        wanted = {b.dimension_id: b for b in profile.bindings}
        try:
            for existing in list(row.bindings):
                if existing.dimension_id not in wanted:
                    row.bindings.remove(existing)

            current = {b.dimension_id: b for b in row.bindings}
            for dimension_id, binding in wanted.items():
                fields = _binding_fields(binding)
                if dimension_id in current:
                    for key, value in fields.items():
                        setattr(current[dimension_id], key, value)
                else:
                    row.bindings.append(DimensionWeightBindingORM(**fields))

            self.s.flush()
            self.s.refresh(row)
            return row
        except SQLAlchemyError as e:
            self._handle_error(e, "sync_profile_bindings")
