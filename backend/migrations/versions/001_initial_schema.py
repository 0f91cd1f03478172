"""Create catalog tables.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

Tier 0: users, verification_tokens, health_checks
Tier 1: products (FK users)
Tier 2: images (FK products)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column(
            "verified", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("account_created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("account_updated", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "verification_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "consumed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("token_hash", name="uq_verification_tokens_token_hash"),
    )
    op.create_index(
        "ix_verification_tokens_email", "verification_tokens", ["email"]
    )

    op.create_table(
        "health_checks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False),
        sa.Column("sku", sa.String(255), nullable=False),
        sa.Column("manufacturer", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "owner_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("sku", name="uq_products_sku"),
        sa.CheckConstraint(
            "quantity >= 0 AND quantity <= 100", name="ck_products_quantity_range"
        ),
    )
    op.create_index("ix_products_owner_user_id", "products", ["owner_user_id"])

    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("storage_path", sa.String(1024), nullable=False),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("storage_path", name="uq_images_storage_path"),
    )
    op.create_index("ix_images_product_id", "images", ["product_id"])


def downgrade() -> None:
    op.drop_index("ix_images_product_id", table_name="images")
    op.drop_table("images")
    op.drop_index("ix_products_owner_user_id", table_name="products")
    op.drop_table("products")
    op.drop_table("health_checks")
    op.drop_index("ix_verification_tokens_email", table_name="verification_tokens")
    op.drop_table("verification_tokens")
    op.drop_table("users")
