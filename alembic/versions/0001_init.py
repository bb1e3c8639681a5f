"""initial

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table('clothes',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('image_key', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('subcategory', sa.String(length=128), nullable=True),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('material', sa.String(length=128), nullable=True),
        sa.Column('season', sa.JSON(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('ai_description', sa.Text(), nullable=True),
        sa.Column('last_worn_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_clothes_user_id', 'clothes', ['user_id'])
    op.create_index('ix_clothes_user_id_created_at', 'clothes', ['user_id', 'created_at'])
    op.create_table('profiles',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('body_type', sa.String(length=32), nullable=True),
        sa.Column('aesthetics', sa.JSON(), nullable=True),
        sa.Column('color_preferences', sa.JSON(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )

def downgrade() -> None:
    op.drop_table('profiles')
    op.drop_index('ix_clothes_user_id_created_at', table_name='clothes')
    op.drop_index('ix_clothes_user_id', table_name='clothes')
    op.drop_table('clothes')
