"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2024-06-03

Creates all core tables for ServiTech Pro.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users table
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), default='solo_technician'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # Clients table
    op.create_table('clients',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('national_id', sa.String(50), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50)),
        sa.Column('email', sa.String(255)),
        sa.Column('address', sa.Text()),
        sa.Column('latitude', sa.Float()),
        sa.Column('longitude', sa.Float()),
        sa.Column('category', sa.String(20), default='REGULAR'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('national_id')
    )
    op.create_index('ix_clients_full_name', 'clients', ['full_name'])

    # Equipment table
    op.create_table('equipment',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('client_id', sa.String(36), nullable=False),
        sa.Column('type', sa.String(100)),
        sa.Column('brand', sa.String(100)),
        sa.Column('model', sa.String(100)),
        sa.Column('serial_number', sa.String(100)),
        sa.Column('purchase_date', sa.Date()),
        sa.Column('specs', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('serial_number')
    )
    op.create_index('ix_equipment_client', 'equipment', ['client_id'])

    # Technicians table
    op.create_table('technicians',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('specialty', sa.String(100)),
        sa.Column('phone', sa.String(50)),
        sa.Column('commission_rate', sa.Float(), default=0),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    # Parts table
    op.create_table('parts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('code', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('location', sa.String(100)),
        sa.Column('stock_level', sa.Integer(), default=0),
        sa.Column('min_stock', sa.Integer(), default=0),
        sa.Column('unit_cost', sa.Float(), default=0),
        sa.Column('unit_price', sa.Float(), default=0),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )
    op.create_index('ix_parts_name', 'parts', ['name'])

    # Service orders table
    op.create_table('service_orders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('order_number', sa.String(50), nullable=False),
        sa.Column('client_id', sa.String(36), nullable=False),
        sa.Column('equipment_id', sa.String(36), nullable=False),
        sa.Column('technician_id', sa.String(36)),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reported_issue', sa.Text()),
        sa.Column('technical_diagnosis', sa.Text()),
        sa.Column('service_type', sa.String(20)),
        sa.Column('priority', sa.String(20)),
        sa.Column('labor_cost', sa.Float(), default=0),
        sa.Column('total_cost', sa.Float(), default=0),
        sa.Column('is_warranty', sa.Boolean(), default=False),
        sa.Column('scheduled_at', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('next_maintenance_date', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id']),
        sa.ForeignKeyConstraint(['technician_id'], ['technicians.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('ix_service_orders_status', 'service_orders', ['status'])
    op.create_index('ix_service_orders_scheduled', 'service_orders', ['scheduled_at'])
    op.create_index('ix_service_orders_client', 'service_orders', ['client_id'])

    # Order items table
    op.create_table('order_items',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('order_id', sa.String(36), nullable=False),
        sa.Column('part_id', sa.String(36), nullable=False),
        sa.Column('quantity', sa.Integer(), default=1),
        sa.Column('price_at_time', sa.Float(), default=0),
        sa.ForeignKeyConstraint(['order_id'], ['service_orders.id']),
        sa.ForeignKeyConstraint(['part_id'], ['parts.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Status history table
    op.create_table('status_history',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('order_id', sa.String(36), nullable=False),
        sa.Column('status_from', sa.String(20)),
        sa.Column('status_to', sa.String(20), nullable=False),
        sa.Column('comment', sa.Text()),
        sa.Column('changed_by_id', sa.String(36)),
        sa.Column('changed_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['order_id'], ['service_orders.id']),
        sa.ForeignKeyConstraint(['changed_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_status_history_order', 'status_history', ['order_id'])

    # Business profile table
    op.create_table('business_profiles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('tax_id', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('phone', sa.String(50)),
        sa.Column('email', sa.String(255)),
        sa.Column('website', sa.String(255)),
        sa.Column('payment_methods', sa.JSON()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('business_profiles')
    op.drop_table('status_history')
    op.drop_table('order_items')
    op.drop_table('service_orders')
    op.drop_table('parts')
    op.drop_table('technicians')
    op.drop_table('equipment')
    op.drop_table('clients')
    op.drop_table('users')
