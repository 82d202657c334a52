"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-06-02

Creates:
- customers, sales_orders, sales_order_items
- work_orders, production_stage_history
- quality_inspections
- sample_requests, sample_material_requirements, sample_process_stages,
  sample_status_history
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Customers
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('contact_person', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('shipping_address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_id', 'customers', ['id'])
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)
    op.create_index('ix_customers_status', 'customers', ['status'])

    # Sales orders
    op.create_table(
        'sales_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('order_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('target_delivery_date', sa.DateTime(), nullable=False),
        sa.Column('actual_delivery_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_sales_orders_id', 'sales_orders', ['id'])
    op.create_index('ix_sales_orders_order_number', 'sales_orders', ['order_number'], unique=True)
    op.create_index('ix_sales_orders_customer_id', 'sales_orders', ['customer_id'])
    op.create_index('ix_sales_orders_target_delivery_date', 'sales_orders', ['target_delivery_date'])
    op.create_index('ix_sales_orders_status', 'sales_orders', ['status'])

    op.create_table(
        'sales_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('design_file_url', sa.Text(), nullable=True),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('specifications', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_sales_order_items_id', 'sales_order_items', ['id'])
    op.create_index('ix_sales_order_items_sales_order_id', 'sales_order_items', ['sales_order_id'])

    # Work orders
    op.create_table(
        'work_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('work_order_number', sa.String(length=50), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), nullable=False),
        sa.Column('sales_order_item_id', sa.Integer(), nullable=False),
        sa.Column('current_stage', sa.String(length=50), nullable=False, server_default='order_processing'),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('estimated_completion', sa.DateTime(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('assigned_to', sa.String(length=100), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['sales_order_item_id'], ['sales_order_items.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_work_orders_id', 'work_orders', ['id'])
    op.create_index('ix_work_orders_work_order_number', 'work_orders', ['work_order_number'], unique=True)
    op.create_index('ix_work_orders_sales_order_id', 'work_orders', ['sales_order_id'])
    op.create_index('ix_work_orders_sales_order_item_id', 'work_orders', ['sales_order_item_id'], unique=True)
    op.create_index('ix_work_orders_current_stage', 'work_orders', ['current_stage'])

    op.create_table(
        'production_stage_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('work_order_id', sa.Integer(), nullable=False),
        sa.Column('stage', sa.String(length=50), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['work_order_id'], ['work_orders.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_production_stage_history_id', 'production_stage_history', ['id'])
    op.create_index('ix_production_stage_history_work_order_id', 'production_stage_history', ['work_order_id'])
    op.create_index('ix_stage_history_work_order_stage', 'production_stage_history', ['work_order_id', 'stage'])

    # Quality inspections
    op.create_table(
        'quality_inspections',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('work_order_id', sa.Integer(), nullable=False),
        sa.Column('stage', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('final_status', sa.String(length=20), nullable=True),
        sa.Column('inspected_by', sa.String(length=100), nullable=False),
        sa.Column('inspection_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('total_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('passed_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('repaired_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rejected_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('issues', sa.JSON(), nullable=True),
        sa.Column('repair_notes', sa.Text(), nullable=True),
        sa.Column('reinspection_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['work_order_id'], ['work_orders.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_quality_inspections_id', 'quality_inspections', ['id'])
    op.create_index('ix_quality_inspections_work_order_id', 'quality_inspections', ['work_order_id'])
    op.create_index('ix_quality_inspections_stage', 'quality_inspections', ['stage'])
    op.create_index('ix_quality_inspections_status', 'quality_inspections', ['status'])
    op.create_index('ix_quality_inspections_inspected_by', 'quality_inspections', ['inspected_by'])
    op.create_index('ix_quality_inspections_inspection_date', 'quality_inspections', ['inspection_date'])

    # R&D samples
    op.create_table(
        'sample_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sample_id', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sample_name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('total_order_quantity', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_sample_requests_id', 'sample_requests', ['id'])
    op.create_index('ix_sample_requests_sample_id', 'sample_requests', ['sample_id'], unique=True)
    op.create_index('ix_sample_requests_customer_id', 'sample_requests', ['customer_id'])
    op.create_index('ix_sample_requests_status', 'sample_requests', ['status'])

    op.create_table(
        'sample_material_requirements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sample_request_id', sa.Integer(), nullable=False),
        sa.Column('material_type', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=20), nullable=False, server_default='pieces'),
        sa.Column('specifications', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sample_request_id'], ['sample_requests.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_sample_material_requirements_id', 'sample_material_requirements', ['id'])
    op.create_index('ix_sample_material_requirements_sample_request_id', 'sample_material_requirements', ['sample_request_id'])
    op.create_index('ix_sample_material_requirements_material_type', 'sample_material_requirements', ['material_type'])

    op.create_table(
        'sample_process_stages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sample_request_id', sa.Integer(), nullable=False),
        sa.Column('process_stage', sa.String(length=50), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sample_request_id'], ['sample_requests.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_sample_process_stages_id', 'sample_process_stages', ['id'])
    op.create_index('ix_sample_process_stages_sample_request_id', 'sample_process_stages', ['sample_request_id'])
    op.create_index('ix_sample_process_stages_process_stage', 'sample_process_stages', ['process_stage'])

    op.create_table(
        'sample_status_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sample_request_id', sa.Integer(), nullable=False),
        sa.Column('previous_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=False),
        sa.Column('changed_by', sa.String(length=100), nullable=False),
        sa.Column('change_reason', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sample_request_id'], ['sample_requests.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_sample_status_history_id', 'sample_status_history', ['id'])
    op.create_index('ix_sample_status_history_sample_request_id', 'sample_status_history', ['sample_request_id'])
    op.create_index('ix_sample_status_history_changed_at', 'sample_status_history', ['changed_at'])


def downgrade() -> None:
    op.drop_table('sample_status_history')
    op.drop_table('sample_process_stages')
    op.drop_table('sample_material_requirements')
    op.drop_table('sample_requests')
    op.drop_table('quality_inspections')
    op.drop_table('production_stage_history')
    op.drop_table('work_orders')
    op.drop_table('sales_order_items')
    op.drop_table('sales_orders')
    op.drop_table('customers')
