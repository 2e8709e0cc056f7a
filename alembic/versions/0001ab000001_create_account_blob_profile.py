"""create account, blob and profile tables

Revision ID: 0001ab000001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001ab000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("email", name="uq_account_email"),
    )
    op.create_index(op.f("ix_account_email"), "account", ["email"], unique=False)

    op.create_table(
        "blob",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("original_filename", sa.String(), nullable=False),
        sa.Column("content_type", sa.String(), nullable=False),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["account.id"]),
    )
    op.create_index(op.f("ix_blob_owner_id"), "blob", ["owner_id"], unique=False)
    op.create_index(op.f("ix_blob_storage_key"), "blob", ["storage_key"], unique=True)

    op.create_table(
        "profile",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("pharmacy_name", sa.String(), nullable=True),
        sa.Column("license_number", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("lang", sa.String(), nullable=True),
        sa.Column("drug_license_id", sa.Integer(), nullable=True),
        sa.Column("gst_certificate_id", sa.Integer(), nullable=True),
        sa.Column("pharmacist_registration_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["drug_license_id"], ["blob.id"]),
        sa.ForeignKeyConstraint(["gst_certificate_id"], ["blob.id"]),
        sa.ForeignKeyConstraint(["pharmacist_registration_id"], ["blob.id"]),
        # Um profile por account: base do get-or-create concorrente
        sa.UniqueConstraint("owner_id", name="uq_profile_owner"),
    )
    op.create_index(op.f("ix_profile_owner_id"), "profile", ["owner_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_profile_owner_id"), table_name="profile")
    op.drop_table("profile")

    op.drop_index(op.f("ix_blob_storage_key"), table_name="blob")
    op.drop_index(op.f("ix_blob_owner_id"), table_name="blob")
    op.drop_table("blob")

    op.drop_index(op.f("ix_account_email"), table_name="account")
    op.drop_table("account")
