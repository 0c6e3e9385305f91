"""backfill legacy store and require entries.store_id

Revision ID: 202602010900
Revises: 202601200900
Create Date: 2026-02-01 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "202602010900"
down_revision = "202601200900"
branch_labels = None
depends_on = None

LEGACY_STORE_NAME = "Legacy Store"


def upgrade() -> None:
    bind = op.get_bind()
    owners = bind.execute(
        sa.text("SELECT DISTINCT user_id FROM entries WHERE store_id IS NULL")
    ).scalars()

    for user_id in list(owners):
        store_id = bind.execute(
            sa.text(
                "SELECT id FROM stores WHERE user_id = :user_id AND name_key = :key"
            ),
            {"user_id": user_id, "key": LEGACY_STORE_NAME.casefold()},
        ).scalar()
        if store_id is None:
            bind.execute(
                sa.text(
                    "INSERT INTO stores (user_id, name, name_key, created_at, updated_at) "
                    "VALUES (:user_id, :name, :key, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
                ),
                {
                    "user_id": user_id,
                    "name": LEGACY_STORE_NAME,
                    "key": LEGACY_STORE_NAME.casefold(),
                },
            )
            store_id = bind.execute(
                sa.text(
                    "SELECT id FROM stores WHERE user_id = :user_id AND name_key = :key"
                ),
                {"user_id": user_id, "key": LEGACY_STORE_NAME.casefold()},
            ).scalar_one()
        bind.execute(
            sa.text(
                "UPDATE entries SET store_id = :store_id "
                "WHERE user_id = :user_id AND store_id IS NULL"
            ),
            {"store_id": store_id, "user_id": user_id},
        )

    with op.batch_alter_table("entries") as batch_op:
        batch_op.alter_column("store_id", existing_type=sa.Integer(), nullable=False)


def downgrade() -> None:
    with op.batch_alter_table("entries") as batch_op:
        batch_op.alter_column("store_id", existing_type=sa.Integer(), nullable=True)
