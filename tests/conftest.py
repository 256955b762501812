import os

os.environ.setdefault("ENVIRONMENT", "test")

import pytest

from competency.domain.bindings import create_binding
from competency.domain.enums import ScaleFamily
from competency.domain.models import Dimension, SuccessProfile
from competency.infrastructure.config import DatabaseConfig, EngineConfig, reset_settings
from competency.infrastructure.db import create_database_engine, create_session_factory
from competency.infrastructure.models import Base


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def engine():
    engine = create_database_engine(DatabaseConfig(backend="sqlite", sqlite_path=":memory:"))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def SessionLocal(engine):
    return create_session_factory(engine)


@pytest.fixture
def session(SessionLocal):
    with SessionLocal() as s:
        yield s


@pytest.fixture
def engine_defaults():
    return EngineConfig()


@pytest.fixture
def make_dimension():
    def _make(id_=1, name=None, min_value=1.0, max_value=5.0, **kwargs):
        return Dimension(
            id=id_,
            name=name or f"Dimension {id_}",
            scale_family=kwargs.pop("scale_family", ScaleFamily.LIKERT_5),
            min_value=min_value,
            max_value=max_value,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_profile(engine_defaults):
    """Build a profile from (dimension, weight, min, target, critical) tuples."""

    def _make(*specs, min_success_score=70.0, target_success_score=85.0, profile_id=1):
        profile = SuccessProfile(
            id=profile_id,
            name="Engineer",
            min_success_score=min_success_score,
            target_success_score=target_success_score,
        )
        bindings = []
        for dimension, weight, min_score, target_score, critical in specs:
            binding = create_binding(
                profile,
                dimension,
                weight=weight,
                min_score=min_score,
                target_score=target_score,
                is_critical=critical,
                defaults=engine_defaults,
            )
            bindings.append(binding)
            profile = SuccessProfile(
                id=profile.id,
                name=profile.name,
                min_success_score=min_success_score,
                target_success_score=target_success_score,
                bindings=tuple(bindings),
            )
        return profile

    return _make


@pytest.fixture
def two_dimension_profile(make_dimension, make_profile):
    """Dimension 1 weighted 70 (min 2, target 4), dimension 2 weighted 30 (min 3, target 4)."""
    a = make_dimension(1, "Technical Competency")
    b = make_dimension(2, "Communication")
    return make_profile(
        (a, 70, 2, 4, False),
        (b, 30, 3, 4, False),
        min_success_score=60,
        target_success_score=85,
    )
