"""add stores

Revision ID: 202601200900
Revises: 202601100900
Create Date: 2026-01-20 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202601200900"
down_revision = "202601100900"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("name_key", sa.String(length=100), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("user_id", "name_key", name="uq_store_user_name_key"),
    )

    with op.batch_alter_table("entries") as batch_op:
        batch_op.add_column(sa.Column("store_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            "fk_entries_store_id_stores", "stores", ["store_id"], ["id"]
        )


def downgrade():
    with op.batch_alter_table("entries") as batch_op:
        batch_op.drop_constraint("fk_entries_store_id_stores", type_="foreignkey")
        batch_op.drop_column("store_id")
    op.drop_table("stores")
