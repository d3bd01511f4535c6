"""create tax configuration, exemption and calculation tables

Revision ID: 8b2e4d6f1a93
Revises: 3f1a9c2b7d40
Create Date: 2026-10-01 09:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8b2e4d6f1a93"
down_revision = "3f1a9c2b7d40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tax_configurations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("establishment_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rate", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("applicable_to", sa.JSON(), nullable=False),
        sa.Column("country_code", sa.String(length=2), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["establishment_id"], ["establishments.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_tax_configurations_establishment_id"), "tax_configurations", ["establishment_id"]
    )
    op.create_index(op.f("ix_tax_configurations_active"), "tax_configurations", ["active"])

    op.create_table(
        "tax_exemptions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("establishment_id", sa.String(length=36), nullable=False),
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column("tax_configuration_id", sa.String(length=36), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("document_number", sa.String(length=100), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["establishment_id"], ["establishments.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["tax_configuration_id"], ["tax_configurations.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_tax_exemptions_establishment_id"), "tax_exemptions", ["establishment_id"]
    )
    op.create_index(op.f("ix_tax_exemptions_client_id"), "tax_exemptions", ["client_id"])
    op.create_index(
        op.f("ix_tax_exemptions_tax_configuration_id"), "tax_exemptions", ["tax_configuration_id"]
    )
    op.create_index(
        "ix_tax_exemptions_client_tax", "tax_exemptions", ["client_id", "tax_configuration_id"]
    )

    op.create_table(
        "tax_calculations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("establishment_id", sa.String(length=36), nullable=False),
        sa.Column("client_id", sa.String(length=36), nullable=True),
        sa.Column("stay_id", sa.String(length=36), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("total_tax", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("local_date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(["establishment_id"], ["establishments.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["stay_id"], ["stays.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("establishment_id", "client_id", "stay_id", "computed_at", "local_date"):
        op.create_index(op.f(f"ix_tax_calculations_{column}"), "tax_calculations", [column])

    op.create_table(
        "tax_calculation_details",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("calculation_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("tax_configuration_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("rate", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("taxable_amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("applied_to", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["calculation_id"], ["tax_calculations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["tax_configuration_id"], ["tax_configurations.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_tax_calculation_details_calculation_id"),
        "tax_calculation_details",
        ["calculation_id"],
    )
    op.create_index(
        op.f("ix_tax_calculation_details_tax_configuration_id"),
        "tax_calculation_details",
        ["tax_configuration_id"],
    )

    op.create_table(
        "tax_calculation_exemptions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("calculation_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("exemption_id", sa.String(length=36), nullable=False),
        sa.Column("tax_configuration_id", sa.String(length=36), nullable=False),
        sa.Column("tax_name", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("document_number", sa.String(length=100), nullable=True),
        sa.Column("amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.ForeignKeyConstraint(["calculation_id"], ["tax_calculations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exemption_id"], ["tax_exemptions.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("calculation_id", "exemption_id", "tax_configuration_id"):
        op.create_index(
            op.f(f"ix_tax_calculation_exemptions_{column}"),
            "tax_calculation_exemptions",
            [column],
        )


def downgrade() -> None:
    op.drop_table("tax_calculation_exemptions")
    op.drop_table("tax_calculation_details")
    op.drop_table("tax_calculations")
    op.drop_index("ix_tax_exemptions_client_tax", table_name="tax_exemptions")
    op.drop_table("tax_exemptions")
    op.drop_table("tax_configurations")
