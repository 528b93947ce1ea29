"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-16 09:12:44

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create jokes table
    op.create_table('jokes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('source', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('date_added', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('funny_rate', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('average_rating', sa.Float(), nullable=True),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('keywords', sa.JSON(), nullable=True),
        sa.CheckConstraint('funny_rate >= 0 AND funny_rate <= 5', name='check_funny_rate_bounds'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_jokes_category'), 'jokes', ['category'], unique=False)
    op.create_index(op.f('ix_jokes_user_id'), 'jokes', ['user_id'], unique=False)
    op.create_index('idx_joke_date_added', 'jokes', ['date_added', 'id'], unique=False)
    op.create_index('idx_joke_user_date_added', 'jokes', ['user_id', 'date_added'], unique=False)

    # Create categories table
    op.create_table('categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_category_user_name', 'categories', ['user_id', 'name'], unique=True)

    # Create joke_ratings table
    op.create_table('joke_ratings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('joke_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('rating_value', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating_value >= 1 AND rating_value <= 5', name='check_rating_value_bounds'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_joke_ratings_joke_id'), 'joke_ratings', ['joke_id'], unique=False)
    op.create_index('idx_rating_joke_user', 'joke_ratings', ['joke_id', 'user_id'], unique=True)
    op.create_index('idx_rating_user_value_updated', 'joke_ratings', ['user_id', 'rating_value', 'updated_at'], unique=False)

    # Create migrations bookkeeping table for data migrations
    op.create_table('migrations',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('name')
    )


def downgrade() -> None:
    # Drop tables in reverse order of creation
    op.drop_table('migrations')

    op.drop_index('idx_rating_user_value_updated', table_name='joke_ratings')
    op.drop_index('idx_rating_joke_user', table_name='joke_ratings')
    op.drop_index(op.f('ix_joke_ratings_joke_id'), table_name='joke_ratings')
    op.drop_table('joke_ratings')

    op.drop_index('idx_category_user_name', table_name='categories')
    op.drop_table('categories')

    op.drop_index('idx_joke_user_date_added', table_name='jokes')
    op.drop_index('idx_joke_date_added', table_name='jokes')
    op.drop_index(op.f('ix_jokes_user_id'), table_name='jokes')
    op.drop_index(op.f('ix_jokes_category'), table_name='jokes')
    op.drop_table('jokes')
