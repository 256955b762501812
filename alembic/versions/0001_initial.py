"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "dimensions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("scale_family", sa.String(length=32), nullable=False),
        sa.Column("min_value", sa.Float(), nullable=False),
        sa.Column("max_value", sa.Float(), nullable=False),
        sa.Column("labels", sa.JSON(), nullable=True),
        sa.Column("display_weight", sa.Float(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("system_protected", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("min_value < max_value", name="ck_dimension_bounds"),
        sa.CheckConstraint(
            "display_weight >= 0 AND display_weight <= 100", name="ck_dimension_display_weight"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "success_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("min_success_score", sa.Float(), nullable=False),
        sa.Column("target_success_score", sa.Float(), nullable=False),
        sa.Column("position_id", sa.Integer(), nullable=True),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("system_protected", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "min_success_score >= 0 AND target_success_score <= 100 "
            "AND min_success_score <= target_success_score",
            name="ck_profile_thresholds",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_success_profiles_name", "success_profiles", ["name"], unique=False)
    op.create_index(
        "ix_success_profiles_position_id", "success_profiles", ["position_id"], unique=False
    )
    op.create_index(
        "ix_success_profiles_department_id", "success_profiles", ["department_id"], unique=False
    )

    op.create_table(
        "success_profile_dimensions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("dimension_id", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("min_score", sa.Float(), nullable=False),
        sa.Column("target_score", sa.Float(), nullable=False),
        sa.Column("is_critical", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("weight >= 0 AND weight <= 100", name="ck_binding_weight"),
        sa.CheckConstraint("min_score <= target_score", name="ck_binding_thresholds"),
        sa.ForeignKeyConstraint(["profile_id"], ["success_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dimension_id"], ["dimensions.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("profile_id", "dimension_id", name="uq_profile_dimension"),
    )
    op.create_index(
        "ix_success_profile_dimensions_profile_id",
        "success_profile_dimensions",
        ["profile_id"],
        unique=False,
    )
    op.create_index(
        "ix_success_profile_dimensions_dimension_id",
        "success_profile_dimensions",
        ["dimension_id"],
        unique=False,
    )

    op.create_table(
        "surveys",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("survey_type", sa.String(length=32), nullable=False),
        sa.Column("target_group", sa.String(length=32), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("max_responses", sa.Integer(), nullable=True),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        sa.Column("repeatable", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("system_protected", sa.Boolean(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "max_responses IS NULL OR max_responses >= 1", name="ck_survey_max_responses"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_surveys_status", "surveys", ["status"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("survey_id", sa.Integer(), nullable=False),
        sa.Column("dimension_id", sa.Integer(), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(length=32), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("min_value", sa.Float(), nullable=True),
        sa.Column("max_value", sa.Float(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dimension_id"], ["dimensions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_survey_id", "questions", ["survey_id"], unique=False)
    op.create_index("ix_questions_dimension_id", "questions", ["dimension_id"], unique=False)

    op.create_table(
        "survey_responses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("survey_id", sa.Integer(), nullable=False),
        sa.Column("respondent_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("completion_percentage", sa.Float(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("completion_minutes", sa.Integer(), nullable=True),
        sa.Column("total_score", sa.Float(), nullable=True),
        sa.Column("weighted_score", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name="ck_response_completion",
        ),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_survey_responses_survey_id", "survey_responses", ["survey_id"], unique=False
    )
    op.create_index(
        "ix_survey_responses_respondent_id", "survey_responses", ["respondent_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_survey_responses_respondent_id", table_name="survey_responses")
    op.drop_index("ix_survey_responses_survey_id", table_name="survey_responses")
    op.drop_table("survey_responses")
    op.drop_index("ix_questions_dimension_id", table_name="questions")
    op.drop_index("ix_questions_survey_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_surveys_status", table_name="surveys")
    op.drop_table("surveys")
    op.drop_index(
        "ix_success_profile_dimensions_dimension_id", table_name="success_profile_dimensions"
    )
    op.drop_index(
        "ix_success_profile_dimensions_profile_id", table_name="success_profile_dimensions"
    )
    op.drop_table("success_profile_dimensions")
    op.drop_index("ix_success_profiles_department_id", table_name="success_profiles")
    op.drop_index("ix_success_profiles_position_id", table_name="success_profiles")
    op.drop_index("ix_success_profiles_name", table_name="success_profiles")
    op.drop_table("success_profiles")
    op.drop_table("dimensions")
