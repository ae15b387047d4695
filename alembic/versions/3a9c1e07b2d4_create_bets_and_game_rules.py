"""create_bets_and_game_rules

Revision ID: 3a9c1e07b2d4
Revises:
Create Date: 2026-10-19 09:41:27.118503

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a9c1e07b2d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the bet ledger and versioned rules tables."""
    op.create_table('bets',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('player', sa.String(), nullable=False),
        sa.Column('bet_amount_lamports', sa.Numeric(precision=20, scale=0), nullable=False),
        sa.Column('bet_type', sa.Integer(), nullable=False),
        sa.Column('target', sa.Integer(), nullable=False),
        sa.Column('roll', sa.Integer(), server_default='0', nullable=False),
        sa.Column('payout_lamports', sa.Numeric(precision=20, scale=0), server_default='0', nullable=False),
        sa.Column('nonce', sa.Numeric(precision=20, scale=0), nullable=False),
        sa.Column('expiry_unix', sa.Numeric(precision=20, scale=0), nullable=False),
        sa.Column('signature_base58', sa.String(), server_default='', nullable=False),
        sa.Column('status', sa.String(length=32), server_default='prepared_lock', nullable=False),
        sa.Column('game', sa.String(length=64), server_default='dice', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('bet_amount_lamports >= 0', name='ck_bets_amount_nonneg'),
        sa.CheckConstraint('payout_lamports >= 0', name='ck_bets_payout_nonneg'),
        sa.CheckConstraint('nonce >= 0', name='ck_bets_nonce_nonneg'),
        sa.CheckConstraint('expiry_unix >= 0', name='ck_bets_expiry_nonneg'),
    )
    op.create_index('ix_bets_nonce', 'bets', ['nonce'])
    op.create_index('ix_bets_player', 'bets', ['player'])
    op.create_index('ix_bets_created_at', 'bets', ['created_at'])

    op.create_table('game_rules',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('game', sa.String(length=64), server_default='dice', nullable=False),
        sa.Column('min_bet_lamports', sa.Numeric(precision=20, scale=0), server_default='0', nullable=False),
        sa.Column('max_bet_lamports', sa.Numeric(precision=20, scale=0), server_default='0', nullable=False),
        sa.Column('house_edge_bps', sa.Integer(), server_default='0', nullable=False),
        sa.Column('params', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Drop the ledger tables."""
    op.drop_table('game_rules')
    op.drop_index('ix_bets_created_at', table_name='bets')
    op.drop_index('ix_bets_player', table_name='bets')
    op.drop_index('ix_bets_nonce', table_name='bets')
    op.drop_table('bets')
