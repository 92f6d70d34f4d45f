"""create_saga_support_tables

Revision ID: 2b3c4d5e6f7a
Revises: 1a2b3c4d5e6f
Create Date: 2026-10-18 09:40:02.117342

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '2b3c4d5e6f7a'
down_revision = '1a2b3c4d5e6f'
branch_labels = None
depends_on = None

identity = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')


def upgrade():
    op.create_table('processed_events',
        sa.Column('id', identity, autoincrement=True, nullable=False),
        sa.Column('consumer_group', sa.String(length=255), nullable=False),
        sa.Column('event_key', sa.String(length=255), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('consumer_group', 'event_key', name='uq_processed_events_group_key')
    )
    op.create_index('ix_processed_events_processed_at', 'processed_events', ['processed_at'], unique=False)

    op.create_table('failed_messages',
        sa.Column('id', identity, autoincrement=True, nullable=False),
        sa.Column('consumer_group', sa.String(length=255), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=False),
        sa.Column('partition', sa.Integer(), nullable=False),
        sa.Column('offset', identity, nullable=False),
        sa.Column('message_key', sa.String(length=255), nullable=True),
        sa.Column('payload', sa.Text(), nullable=True),
        sa.Column('error_type', sa.String(length=255), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_failed_messages_consumer_group', 'failed_messages', ['consumer_group'], unique=False)
    op.create_index('ix_failed_messages_topic', 'failed_messages', ['topic'], unique=False)

    op.create_table('idempotency_records',
        sa.Column('id', identity, autoincrement=True, nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('request_method', sa.String(length=10), nullable=False),
        sa.Column('request_path', sa.String(length=500), nullable=False),
        sa.Column('response_status', sa.Integer(), nullable=True),
        sa.Column('response_body', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_idempotency_records_idempotency_key', 'idempotency_records', ['idempotency_key'], unique=True)


def downgrade():
    op.drop_index('ix_idempotency_records_idempotency_key', table_name='idempotency_records')
    op.drop_table('idempotency_records')
    op.drop_index('ix_failed_messages_topic', table_name='failed_messages')
    op.drop_index('ix_failed_messages_consumer_group', table_name='failed_messages')
    op.drop_table('failed_messages')
    op.drop_index('ix_processed_events_processed_at', table_name='processed_events')
    op.drop_table('processed_events')
