"""create_quest_progress_tables

Revision ID: 3f9a1c7d2b64
Revises:
Create Date: 2026-10-19 09:12:41.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7d2b64'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# (table, subject column, completion flag column, unique index name)
PROGRESS_TABLES = [
    ("quest_progress", "wallet", "completed_today", "ix_quest_progress_wallet_quest"),
    ("quest_progress_nft", "nft_id", "completed_today", "ix_quest_progress_nft_nft_quest"),
    ("new_player_quests", "wallet", "completed", "ix_new_player_quests_wallet_quest"),
    ("new_player_quests_nft", "nft_id", "completed", "ix_new_player_quests_nft_nft_quest"),
]


def upgrade() -> None:
    """Add the quest progress tables."""
    for table_name, subject_column, flag_column, unique_index in PROGRESS_TABLES:
        op.create_table(
            table_name,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('quest_name', sa.String(length=64), nullable=False),
            sa.Column('total_reward_points', sa.Integer(), nullable=False),
            sa.Column('player_name', sa.String(length=100), nullable=True),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
            sa.Column(flag_column, sa.Boolean(), nullable=False),
            sa.Column(subject_column, sa.String(length=128), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table_name}_quest_name', table_name, ['quest_name'], unique=False)
        op.create_index(f'ix_{table_name}_{subject_column}', table_name, [subject_column], unique=False)
        op.create_index(unique_index, table_name, [subject_column, 'quest_name'], unique=True)


def downgrade() -> None:
    """Remove the quest progress tables."""
    for table_name, subject_column, _flag_column, unique_index in reversed(PROGRESS_TABLES):
        op.drop_index(unique_index, table_name=table_name)
        op.drop_index(f'ix_{table_name}_{subject_column}', table_name=table_name)
        op.drop_index(f'ix_{table_name}_quest_name', table_name=table_name)
        op.drop_table(table_name)
