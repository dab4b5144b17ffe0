"""Initial receiving schema — configuration, receptions, pricing, batches.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Configuration tables ─────────────────────────────────

    op.create_table(
        "fruit_types",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("fruit_type", sa.String(50), nullable=False, index=True),
        sa.Column("subtype", sa.String(100), nullable=False, server_default=""),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "quality_thresholds",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("fruit_type_id", sa.String(36), sa.ForeignKey("fruit_types.id"), nullable=False, index=True),
        sa.Column("metric", sa.String(50), nullable=False),
        sa.Column("limit_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("enabled", sa.Boolean(), server_default="true", index=True),
        sa.Column("created_by", sa.String(36)),
        sa.Column("updated_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("fruit_type_id", "metric", name="uq_threshold_fruit_metric"),
    )

    op.create_table(
        "daily_prices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("fruit_type_id", sa.String(36), sa.ForeignKey("fruit_types.id"), nullable=False, index=True),
        sa.Column("price_date", sa.Date(), nullable=False, index=True),
        sa.Column("price_per_kg", sa.Numeric(12, 4), nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true"),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Batches (referenced by receptions) ───────────────────

    op.create_table(
        "cacao_batches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("batch_type", sa.String(30), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("expected_completion_date", sa.DateTime()),
        sa.Column("status", sa.String(30), server_default="in_progress", index=True),
        sa.Column("total_wet_weight_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("total_dried_weight_kg", sa.Numeric(14, 4)),
        sa.Column("sack_count", sa.Integer()),
        sa.Column("remainder_kg", sa.Numeric(14, 4)),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Receptions & quality ─────────────────────────────────

    op.create_table(
        "receptions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reception_number", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("fruit_type_id", sa.String(36), sa.ForeignKey("fruit_types.id"), nullable=False, index=True),
        sa.Column("provider_name", sa.String(255)),
        sa.Column("truck_plate", sa.String(30)),
        sa.Column("total_containers", sa.Integer()),
        sa.Column("reception_date", sa.Date(), index=True),
        sa.Column("original_weight_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("total_discount_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("final_weight_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("lab_sample_wet_weight_kg", sa.Numeric(14, 4)),
        sa.Column("lab_sample_dried_weight_kg", sa.Numeric(14, 4)),
        sa.Column("dried_weight_kg", sa.Numeric(14, 4)),
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("cacao_batches.id"), index=True),
        sa.Column("pricing_calculation_id", sa.String(36)),
        sa.Column("status", sa.String(30), server_default="draft", index=True),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "quality_readings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reception_id", sa.String(36), sa.ForeignKey("receptions.id"), nullable=False, unique=True),
        sa.Column("violetas", sa.Numeric(7, 4)),
        sa.Column("humedad", sa.Numeric(7, 4)),
        sa.Column("moho", sa.Numeric(7, 4)),
        sa.Column("created_by", sa.String(36)),
        sa.Column("updated_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "discount_line_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reception_id", sa.String(36), sa.ForeignKey("receptions.id"), nullable=False, index=True),
        sa.Column("position", sa.Integer(), server_default="0"),
        sa.Column("parameter", sa.String(50), nullable=False),
        sa.Column("threshold_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("observed_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("discount_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("deducted_weight_kg", sa.Numeric(14, 4), nullable=False),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "pricing_calculations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reception_id", sa.String(36), sa.ForeignKey("receptions.id"), nullable=False, unique=True),
        sa.Column("daily_price_id", sa.String(36), sa.ForeignKey("daily_prices.id")),
        sa.Column("base_price_per_kg", sa.Numeric(12, 4), nullable=False),
        sa.Column("total_weight_kg", sa.Numeric(14, 4), nullable=False),
        sa.Column("gross_value", sa.Numeric(16, 4), nullable=False),
        sa.Column("total_discount_amount", sa.Numeric(16, 4), nullable=False, server_default="0"),
        sa.Column("final_total", sa.Numeric(16, 4), nullable=False),
        sa.Column("calculation_data", sa.JSON()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "laboratory_samples",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reception_id", sa.String(36), sa.ForeignKey("receptions.id"), nullable=False, unique=True),
        sa.Column("sample_weight_kg", sa.Numeric(14, 4), nullable=False),
        sa.Column("estimated_drying_days", sa.Integer(), server_default="0"),
        sa.Column("status", sa.String(30), server_default="drying", index=True),
        sa.Column("dried_sample_kg", sa.Numeric(14, 4)),
        sa.Column("violetas_percentage", sa.Numeric(7, 4)),
        sa.Column("moho_percentage", sa.Numeric(7, 4)),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "batch_receptions",
        sa.Column("batch_id", sa.String(36), sa.ForeignKey("cacao_batches.id"), primary_key=True),
        sa.Column("reception_id", sa.String(36), sa.ForeignKey("receptions.id"), primary_key=True),
        sa.Column("position", sa.Integer(), server_default="0"),
        sa.Column("wet_weight_contribution_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("percentage_of_total", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("proportional_dried_weight_kg", sa.Numeric(14, 4), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("batch_receptions")
    op.drop_table("laboratory_samples")
    op.drop_table("pricing_calculations")
    op.drop_table("discount_line_items")
    op.drop_table("quality_readings")
    op.drop_table("receptions")
    op.drop_table("cacao_batches")
    op.drop_table("daily_prices")
    op.drop_table("quality_thresholds")
    op.drop_table("fruit_types")
