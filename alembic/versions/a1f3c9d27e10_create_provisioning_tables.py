"""create_provisioning_tables

Revision ID: a1f3c9d27e10
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "a1f3c9d27e10"
down_revision = None
branch_labels = None
depends_on = None


communication_type = sa.Enum("VSAT", "M2M", name="communicationtype")
installation_status = sa.Enum("pending", "approved", "dismantled", name="installationstatus")
relocation_status = sa.Enum("pending", "approved", name="relocationstatus")
dismantle_status = sa.Enum("pending", "approved", name="dismantlestatus")


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("location", sa.String(length=160), nullable=False, unique=True),
        sa.Column("province", sa.String(length=160), nullable=False),
    )
    op.create_table(
        "providers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String(length=160), nullable=False),
    )
    op.create_table(
        "coverage",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("avail", sa.Boolean(), nullable=True),
        sa.UniqueConstraint("location_id", "provider_id", name="uq_coverage_location_provider"),
    )
    op.create_table(
        "slas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.UniqueConstraint("location_id", "provider_id", name="uq_slas_location_provider"),
    )
    op.create_table(
        "prices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.UniqueConstraint("location_id", "provider_id", name="uq_prices_location_provider"),
    )

    op.create_table(
        "installations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("location", sa.String(length=160), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.String(length=160), nullable=False),
        sa.Column("area", sa.String(length=160), nullable=True),
        sa.Column("province", sa.String(length=160), nullable=True),
        sa.Column("communication", communication_type, nullable=False),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=True),
        sa.Column("provider", sa.String(length=160), nullable=True),
        sa.Column("price_id", sa.Integer(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.Column("days", sa.Integer(), nullable=True),
        sa.Column("status", installation_status, nullable=False),
        sa.Column("relocation_status", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dismantle_status", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_installations_province", "installations", ["province"])
    op.create_index("ix_installations_provider_id", "installations", ["provider_id"])
    op.create_index("ix_installations_status", "installations", ["status"])
    op.create_index("ix_installations_batch_id", "installations", ["batch_id"])

    op.create_table(
        "relocations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("installation_id", sa.Integer(), sa.ForeignKey("installations.id"), nullable=False),
        sa.Column("old_location", sa.String(length=160), nullable=False),
        sa.Column("new_location", sa.String(length=160), nullable=False),
        sa.Column("old_address", sa.String(length=255), nullable=False),
        sa.Column("new_address", sa.String(length=255), nullable=False),
        sa.Column("old_area", sa.String(length=160), nullable=True),
        sa.Column("new_area", sa.String(length=160), nullable=True),
        sa.Column("old_communication", communication_type, nullable=False),
        sa.Column("new_communication", communication_type, nullable=False),
        sa.Column("old_contact", sa.String(length=160), nullable=True),
        sa.Column("new_contact", sa.String(length=160), nullable=True),
        sa.Column("provider_id", sa.Integer(), nullable=True),
        sa.Column("provider", sa.String(length=160), nullable=True),
        sa.Column("status", relocation_status, nullable=False),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_relocations_installation_id", "relocations", ["installation_id"])
    op.create_index("ix_relocations_batch_id", "relocations", ["batch_id"])

    op.create_table(
        "dismantles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("installation_id", sa.Integer(), sa.ForeignKey("installations.id"), nullable=False),
        sa.Column("location", sa.String(length=160), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=True),
        sa.Column("provider", sa.String(length=160), nullable=True),
        sa.Column("status", dismantle_status, nullable=False),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_dismantles_installation_id", "dismantles", ["installation_id"])
    op.create_index("ix_dismantles_batch_id", "dismantles", ["batch_id"])


def downgrade() -> None:
    op.drop_index("ix_dismantles_batch_id", table_name="dismantles")
    op.drop_index("ix_dismantles_installation_id", table_name="dismantles")
    op.drop_table("dismantles")
    op.drop_index("ix_relocations_batch_id", table_name="relocations")
    op.drop_index("ix_relocations_installation_id", table_name="relocations")
    op.drop_table("relocations")
    op.drop_index("ix_installations_batch_id", table_name="installations")
    op.drop_index("ix_installations_status", table_name="installations")
    op.drop_index("ix_installations_provider_id", table_name="installations")
    op.drop_index("ix_installations_province", table_name="installations")
    op.drop_table("installations")
    op.drop_table("prices")
    op.drop_table("slas")
    op.drop_table("coverage")
    op.drop_table("providers")
    op.drop_table("locations")

    bind = op.get_bind()
    for enum_type in (dismantle_status, relocation_status, installation_status, communication_type):
        enum_type.drop(bind, checkfirst=True)
