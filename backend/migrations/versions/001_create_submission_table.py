"""Create submission table

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create submission table with status enum and attachment metadata."""

    op.execute("""
        CREATE TYPE submissionstatus AS ENUM (
            'PENDING',
            'FLAGGED',
            'REVIEWED'
        )
    """)

    op.create_table(
        'submission',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),

        # Submitter (name only when shared; address only as a salted digest)
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('contact', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('district', sa.Text(), nullable=True),
        sa.Column('seat_name', sa.Text(), nullable=True),
        sa.Column('ip_digest', sa.Text(), nullable=False),

        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('locale', sa.Text(), nullable=False),
        sa.Column('status', postgresql.ENUM('PENDING', 'FLAGGED', 'REVIEWED',
                                           name='submissionstatus', create_type=False),
                  nullable=False, server_default='PENDING'),

        # Attachment metadata (all NULL or all set)
        sa.Column('attachment_url', sa.Text(), nullable=True),
        sa.Column('attachment_key', sa.Text(), nullable=True),
        sa.Column('attachment_name', sa.Text(), nullable=True),
        sa.Column('attachment_size', sa.BigInteger(), nullable=True),
        sa.Column('attachment_type', sa.Text(), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),

        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "(attachment_key IS NULL) = (attachment_url IS NULL) "
            "AND (attachment_key IS NULL) = (attachment_size IS NULL)",
            name='ck_submission_attachment_complete',
        ),
    )

    op.create_index('ix_submission_status', 'submission', ['status'])
    op.create_index('ix_submission_created_at', 'submission', ['created_at'])
    op.create_index('ix_submission_ip_digest', 'submission', ['ip_digest'])


def downgrade():
    """Drop submission table and enum."""
    op.drop_index('ix_submission_ip_digest', table_name='submission')
    op.drop_index('ix_submission_created_at', table_name='submission')
    op.drop_index('ix_submission_status', table_name='submission')
    op.drop_table('submission')
    op.execute('DROP TYPE submissionstatus')
