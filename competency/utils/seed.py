from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..domain.enums import DimensionCategory, ScaleFamily
from ..domain.models import Dimension
from ..domain.scales import default_label_set
from ..infrastructure.logging import get_logger
from ..infrastructure.mappers import to_dimension
from ..infrastructure.models import Base
from ..infrastructure.repositories import DimensionRepo

logger = get_logger(__name__)

# (name, description, category); seeded as protected 5-point Likert dimensions
DEFAULT_DIMENSIONS: tuple[tuple[str, str, DimensionCategory], ...] = (
    ("Technical Competency", "Technical skills and expertise", DimensionCategory.TECHNICAL),
    ("Communication", "Verbal and written communication skills", DimensionCategory.COMMUNICATION),
    ("Teamwork", "Collaboration and cohesion within the team", DimensionCategory.TEAMWORK),
    (
        "Problem Solving",
        "Analytical thinking and producing solutions",
        DimensionCategory.PROBLEM_SOLVING,
    ),
    ("Leadership", "Management and leadership skills", DimensionCategory.LEADERSHIP),
    (
        "Customer Focus",
        "Customer satisfaction and service quality",
        DimensionCategory.CUSTOMER_FOCUS,
    ),
    ("Innovation", "Creativity and innovative thinking", DimensionCategory.INNOVATION),
    ("Adaptability", "Adapting to change and flexibility", DimensionCategory.ADAPTABILITY),
)


def initialise_database(engine: Engine) -> bool:
    """
    Ensure all ORM tables exist.

    Returns:
        True if every table already existed before this call, False if at least one table
        needed to be created.
    """

    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    expected_tables = [table.name for table in Base.metadata.sorted_tables]
    already_exists = all(table in existing_tables for table in expected_tables)
    Base.metadata.create_all(engine)
    return already_exists


def seed_default_dimensions(session: Session) -> list[Dimension]:
    """
    Insert the built-in dimensions that are missing, matched by name.

    Returns:
        The dimensions created by this call; empty when all already exist.
    """
    repo = DimensionRepo(session)
    defaults = default_label_set(ScaleFamily.LIKERT_5)
    created = []
    for order, (name, description, category) in enumerate(DEFAULT_DIMENSIONS, start=1):
        if repo.get_by_name(name) is not None:
            continue
        dimension = Dimension(
            id=None,
            name=name,
            category=category,
            scale_family=ScaleFamily.LIKERT_5,
            min_value=defaults.min_value,
            max_value=defaults.max_value,
            labels=dict(defaults.labels),
            display_weight=10.0,
            system_protected=True,
            description=description,
            display_order=order,
        )
        created.append(to_dimension(repo.add(dimension)))

    logger.info(f"Seeded {len(created)} default dimensions")
    return created
