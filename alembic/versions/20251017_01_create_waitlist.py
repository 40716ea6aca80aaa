"""create waitlist table

Revision ID: create_waitlist
Revises:
Create Date: 2025-10-17

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_waitlist'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'waitlist',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('token', sa.String(), nullable=True),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_waitlist_email', 'waitlist', ['email'], unique=True)
    op.create_index('ix_waitlist_token', 'waitlist', ['token'])


def downgrade():
    op.drop_index('ix_waitlist_token', table_name='waitlist')
    op.drop_index('ix_waitlist_email', table_name='waitlist')
    op.drop_table('waitlist')
