from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class DimensionORM(Base):
    __tablename__ = "dimensions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="TECHNICAL")
    scale_family: Mapped[str] = mapped_column(String(32), nullable=False, default="LIKERT_5")
    min_value: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    max_value: Mapped[float] = mapped_column(Float, nullable=False, default=5.0)
    # JSON object keys are strings; mappers convert them back to ints
    labels: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    display_weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("min_value < max_value", name="ck_dimension_bounds"),
        CheckConstraint(
            "display_weight >= 0 AND display_weight <= 100", name="ck_dimension_display_weight"
        ),
    )

    bindings: Mapped[list[DimensionWeightBindingORM]] = relationship(back_populates="dimension")


class SuccessProfileORM(Base):
    __tablename__ = "success_profiles"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    scope: Mapped[str] = mapped_column(String(32), nullable=False, default="COMPANY_WIDE")
    min_success_score: Mapped[float] = mapped_column(Float, nullable=False, default=70.0)
    target_success_score: Mapped[float] = mapped_column(Float, nullable=False, default=85.0)
    position_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    department_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "min_success_score >= 0 AND target_success_score <= 100 "
            "AND min_success_score <= target_success_score",
            name="ck_profile_thresholds",
        ),
    )

    bindings: Mapped[list[DimensionWeightBindingORM]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="DimensionWeightBindingORM.display_order",
    )


class DimensionWeightBindingORM(Base):
    __tablename__ = "success_profile_dimensions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("success_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dimension_id: Mapped[int] = mapped_column(
        ForeignKey("dimensions.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=10.0)
    min_score: Mapped[float] = mapped_column(Float, nullable=False)
    target_score: Mapped[float] = mapped_column(Float, nullable=False)
    is_critical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "dimension_id", name="uq_profile_dimension"),
        CheckConstraint("weight >= 0 AND weight <= 100", name="ck_binding_weight"),
        CheckConstraint("min_score <= target_score", name="ck_binding_thresholds"),
    )

    profile: Mapped[SuccessProfileORM] = relationship(back_populates="bindings")
    dimension: Mapped[DimensionORM] = relationship(back_populates="bindings", lazy="joined")


class SurveyORM(Base):
    __tablename__ = "surveys"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="DRAFT", index=True)
    survey_type: Mapped[str] = mapped_column(String(32), nullable=False, default="PERFORMANCE")
    target_group: Mapped[str] = mapped_column(String(32), nullable=False, default="ALL_EMPLOYEES")
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    max_responses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    repeatable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_protected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Optimistic lock: every UPDATE checks and bumps this counter
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        CheckConstraint(
            "max_responses IS NULL OR max_responses >= 1", name="ck_survey_max_responses"
        ),
    )

    questions: Mapped[list[QuestionORM]] = relationship(
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="QuestionORM.display_order",
    )
    responses: Mapped[list[SurveyResponseORM]] = relationship(
        back_populates="survey", cascade="all, delete-orphan"
    )


class QuestionORM(Base):
    __tablename__ = "questions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    survey_id: Mapped[int] = mapped_column(
        ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dimension_id: Mapped[int | None] = mapped_column(
        ForeignKey("dimensions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(32), nullable=False, default="LIKERT_5")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    min_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )

    survey: Mapped[SurveyORM] = relationship(back_populates="questions")


class SurveyResponseORM(Base):
    __tablename__ = "survey_responses"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    survey_id: Mapped[int] = mapped_column(
        ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True
    )
    respondent_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="STARTED")
    completion_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    completion_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    weighted_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name="ck_response_completion",
        ),
    )

    survey: Mapped[SurveyORM] = relationship(back_populates="responses")
