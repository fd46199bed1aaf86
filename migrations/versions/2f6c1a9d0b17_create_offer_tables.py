"""create_offer_tables

Revision ID: 2f6c1a9d0b17
Revises:
Create Date: 2026-10-18 09:12:40.118532

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '2f6c1a9d0b17'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create businesses, users, products, warehouses, offers and their child tables."""
    op.create_table(
        'businesses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('api_key_hash', sa.String(64), unique=True, comment='sha256 of the bearer token'),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_business_id', 'users', ['business_id'])
    op.create_index('ix_users_api_key_hash', 'users', ['api_key_hash'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        *timestamps(),
    )
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'product_parameters',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False, comment="e.g. 'Module Power'"),
        sa.Column('value', sa.String(255), comment="Raw value as entered, e.g. '410 Wp'"),
    )
    op.create_index('ix_product_parameters_product_id', 'product_parameters', ['product_id'])

    op.create_table(
        'warehouses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('country_code', sa.String(2)),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'offers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('business_id', sa.Integer(), sa.ForeignKey('businesses.id', ondelete='SET NULL'),
                  comment='Business owning the offer, copied from the seller'),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id', ondelete='SET NULL')),
        sa.Column('promotion_id', sa.Integer(), comment='Promotion the offer takes part in'),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('availability_quantity', sa.Integer(), nullable=False),
        sa.Column('min_order_quantity', sa.Integer(), nullable=False),
        sa.Column('min_order_unit', sa.String(20), nullable=False),
        sa.Column('price_display_unit', sa.String(20), nullable=False),
        sa.Column('lowest_price', sa.Float(), comment='Cache of the minimum tier price'),
        sa.Column('publish_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('expire_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('publish_at_defaulted', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment='publish_at was filled on activation'),
        sa.Column('expire_at_defaulted', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment='expire_at was filled on activation'),
        sa.Column('shipping_available_from', sa.TIMESTAMP(timezone=True)),
        sa.Column('exported_at', sa.TIMESTAMP(timezone=True)),
        *timestamps(),
    )
    op.create_index('ix_offers_user_id', 'offers', ['user_id'])
    op.create_index('ix_offers_business_id', 'offers', ['business_id'])
    op.create_index('ix_offers_status', 'offers', ['status'])
    op.create_index('ix_offers_created_at', 'offers', ['created_at'])

    op.create_table(
        'offer_prices',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('offer_id', sa.Integer(), sa.ForeignKey('offers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('price_wp', sa.Float(), comment='Price per watt-peak as entered'),
        sa.Column('from_quantity', sa.Integer()),
        sa.Column('to_quantity', sa.Integer()),
    )
    op.create_index('ix_offer_prices_offer_id', 'offer_prices', ['offer_id'])

    op.create_table(
        'incoterms',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_kind', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(10), nullable=False, comment='e.g. CIF, EXW, FCA'),
        sa.Column('value', sa.Boolean(), nullable=False, comment='Whether the term is enabled'),
        sa.Column('price', sa.Integer(), comment='Price in minor units'),
        sa.Column('shipping_from_country', sa.String(2)),
        sa.Column('pickup_available_in_weeks', sa.Integer()),
        sa.Column('override_warehouse', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
        sa.UniqueConstraint('owner_kind', 'owner_id', 'name', name='uq_incoterms_owner_name'),
    )
    op.create_index('ix_incoterms_owner', 'incoterms', ['owner_kind', 'owner_id'])

    op.create_table(
        'offer_countries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('owner_kind', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('country_code', sa.String(2), nullable=False),
        sa.Column('value', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )
    op.create_index('ix_offer_countries_owner', 'offer_countries', ['owner_kind', 'owner_id'])

    op.create_table(
        'offer_views',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE')),
        sa.Column('offer_id', sa.Integer(), sa.ForeignKey('offers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ip_address', sa.String(45)),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_offer_views_user_id', 'offer_views', ['user_id'])
    op.create_index('ix_offer_views_offer_id', 'offer_views', ['offer_id'])

    op.create_table(
        'offer_favorites',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('offer_id', sa.Integer(), sa.ForeignKey('offers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'offer_id', name='uq_offer_favorites_user_offer'),
    )


def downgrade() -> None:
    """Drop every table created by upgrade()."""
    for table in (
        'offer_favorites',
        'offer_views',
        'offer_countries',
        'incoterms',
        'offer_prices',
        'offers',
        'warehouses',
        'product_parameters',
        'products',
        'users',
        'businesses',
    ):
        op.drop_table(table)
