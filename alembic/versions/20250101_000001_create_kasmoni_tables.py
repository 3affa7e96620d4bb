"""Create kasmoni tables

Revision ID: 20250101_000001
Revises: None
Create Date: 2025-01-01

This migration creates members, groups and slot assignments, the payment
tables (live, trashbox, archive), payment requests, the payment audit
log, the bank registry and the message inbox.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20250101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _payment_columns():
    """Columns shared by payments, payments_trashbox and payments_archive."""
    return [
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_month', sa.String(length=7), nullable=False),
        sa.Column('slot', sa.String(length=7), nullable=False),
        sa.Column('payment_type', sa.String(length=20), nullable=False),
        sa.Column('sender_bank', sa.String(length=100), nullable=True),
        sa.Column('receiver_bank', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='not_paid'),
        sa.Column('proof_of_payment', sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('birthplace', sa.String(length=100), nullable=True),
        sa.Column('address', sa.String(length=200), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('nationality', sa.String(length=50), nullable=True),
        sa.Column('occupation', sa.String(length=100), nullable=True),
        sa.Column('national_id', sa.String(length=20), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('bank_name', sa.String(length=100), nullable=True),
        sa.Column('account_number', sa.String(length=50), nullable=True),
        sa.Column('registration_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('national_id', name='uq_members_national_id'),
        sa.UniqueConstraint('email', name='uq_members_email'),
    )

    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('monthly_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('max_members', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('start_month', sa.String(length=7), nullable=False),
        sa.Column('end_month', sa.String(length=7), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_groups_end_month', 'groups', ['end_month'])

    op.create_table(
        'group_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('receive_month', sa.String(length=7), nullable=False),
        sa.Column('joined_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], name='fk_group_members_group_id'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], name='fk_group_members_member_id'),
        sa.UniqueConstraint('group_id', 'receive_month', name='uq_group_members_group_month'),
    )
    op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])
    op.create_index('ix_group_members_member_id', 'group_members', ['member_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        *_payment_columns(),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], name='fk_payments_group_id'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], name='fk_payments_member_id'),
    )
    op.create_index('ix_payments_group_id', 'payments', ['group_id'])
    op.create_index('ix_payments_member_id', 'payments', ['member_id'])
    op.create_index('ix_payments_payment_month', 'payments', ['payment_month'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    op.create_table(
        'payments_trashbox',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('original_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        *_payment_columns(),
        sa.Column('deleted_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_by_user_id', sa.Integer(), nullable=True),
        sa.Column('deleted_by_username', sa.String(length=100), nullable=True),
        sa.Column('deletion_reason', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_trashbox_original_id', 'payments_trashbox', ['original_id'])
    op.create_index('ix_payments_trashbox_group_id', 'payments_trashbox', ['group_id'])
    op.create_index('ix_payments_trashbox_member_id', 'payments_trashbox', ['member_id'])

    op.create_table(
        'payments_archive',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('original_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        *_payment_columns(),
        sa.Column('archived_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('archived_by_user_id', sa.Integer(), nullable=True),
        sa.Column('archived_by_username', sa.String(length=100), nullable=True),
        sa.Column('archive_reason', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    # One archive row per payment id
    op.create_index('ix_payments_archive_original_id', 'payments_archive', ['original_id'], unique=True)
    op.create_index('ix_payments_archive_group_id', 'payments_archive', ['group_id'])
    op.create_index('ix_payments_archive_member_id', 'payments_archive', ['member_id'])

    op.create_table(
        'payment_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_month', sa.String(length=7), nullable=False),
        sa.Column('slot', sa.String(length=7), nullable=False),
        sa.Column('payment_type', sa.String(length=20), nullable=False),
        sa.Column('sender_bank', sa.String(length=100), nullable=True),
        sa.Column('receiver_bank', sa.String(length=100), nullable=True),
        sa.Column('proof_of_payment', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending_approval'),
        sa.Column('request_notes', sa.String(length=500), nullable=True),
        sa.Column('admin_notes', sa.String(length=500), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_by_username', sa.String(length=100), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], name='fk_payment_requests_member_id'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], name='fk_payment_requests_group_id'),
    )
    op.create_index('ix_payment_requests_member_id', 'payment_requests', ['member_id'])
    op.create_index('ix_payment_requests_group_id', 'payment_requests', ['group_id'])
    op.create_index('ix_payment_requests_status', 'payment_requests', ['status'])

    # Audit log: no foreign keys, rows outlive the payments they describe
    op.create_table(
        'payment_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('payment_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('old_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=True),
        sa.Column('old_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('new_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('old_payment_date', sa.Date(), nullable=True),
        sa.Column('new_payment_date', sa.Date(), nullable=True),
        sa.Column('old_payment_month', sa.String(length=7), nullable=True),
        sa.Column('new_payment_month', sa.String(length=7), nullable=True),
        sa.Column('old_payment_type', sa.String(length=20), nullable=True),
        sa.Column('new_payment_type', sa.String(length=20), nullable=True),
        sa.Column('old_sender_bank', sa.String(length=100), nullable=True),
        sa.Column('new_sender_bank', sa.String(length=100), nullable=True),
        sa.Column('old_receiver_bank', sa.String(length=100), nullable=True),
        sa.Column('new_receiver_bank', sa.String(length=100), nullable=True),
        sa.Column('old_proof_of_payment', sa.Text(), nullable=True),
        sa.Column('new_proof_of_payment', sa.Text(), nullable=True),
        sa.Column('old_slot', sa.String(length=7), nullable=True),
        sa.Column('new_slot', sa.String(length=7), nullable=True),
        sa.Column('old_member_id', sa.Integer(), nullable=True),
        sa.Column('new_member_id', sa.Integer(), nullable=True),
        sa.Column('old_group_id', sa.Integer(), nullable=True),
        sa.Column('new_group_id', sa.Integer(), nullable=True),
        sa.Column('member_id', sa.Integer(), nullable=True),
        sa.Column('group_id', sa.Integer(), nullable=True),
        sa.Column('bulk_payment_count', sa.Integer(), nullable=True),
        sa.Column('details', sa.String(length=500), nullable=True),
        sa.Column('performed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('performed_by_username', sa.String(length=100), nullable=True),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_logs_payment_id', 'payment_logs', ['payment_id'])
    op.create_index('ix_payment_logs_action', 'payment_logs', ['action'])
    op.create_index('ix_payment_logs_member_id', 'payment_logs', ['member_id'])
    op.create_index('ix_payment_logs_group_id', 'payment_logs', ['group_id'])
    op.create_index('ix_payment_logs_timestamp', 'payment_logs', ['timestamp'])

    op.create_table(
        'banks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bank_name', sa.String(length=100), nullable=False),
        sa.Column('short_name', sa.String(length=20), nullable=False),
        sa.Column('bank_address', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bank_name', name='uq_banks_bank_name'),
        sa.UniqueConstraint('short_name', name='uq_banks_short_name'),
    )

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('member_name', sa.String(length=101), nullable=False),
        sa.Column('member_email', sa.String(length=255), nullable=True),
        sa.Column('member_phone', sa.String(length=20), nullable=True),
        sa.Column('request_type', sa.String(length=30), nullable=False),
        sa.Column('request_details', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_member_id', 'messages', ['member_id'])
    op.create_index('ix_messages_status', 'messages', ['status'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('messages')
    op.drop_table('banks')
    op.drop_table('payment_logs')
    op.drop_table('payment_requests')
    op.drop_table('payments_archive')
    op.drop_table('payments_trashbox')
    op.drop_table('payments')
    op.drop_table('group_members')
    op.drop_table('groups')
    op.drop_table('members')
