"""Create warehouse back office tables

Revision ID: a1f3c9d27e10
Revises:
Create Date: 2026-10-19

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = 'a1f3c9d27e10'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


location_type = sa.Enum('warehouse', 'person', 'consumed', name='locationtype')
inventory_unit_status = sa.Enum(
    'available', 'faulty', 'allocated', 'in_transit', 'consumed', name='inventoryunitstatus'
)
material_request_status = sa.Enum(
    'draft', 'submitted', 'approved', 'rejected', 'fulfilled', name='materialrequeststatus'
)
allocation_status = sa.Enum('allocated', 'transferred', 'cancelled', name='allocationstatus')
audit_action = sa.Enum(
    'create', 'update', 'delete', 'approve', 'reject', 'allocate', 'cancel', 'transfer', 'consume', 'return_',
    name='auditaction',
)
notification_type = sa.Enum('info', 'warning', 'alert', 'success', name='notificationtype')
event_status = sa.Enum('pending', 'processed', 'failed', name='eventstatus')


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    ]


def upgrade() -> None:
    op.create_table(
        'people',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('first_name', sa.String(80), nullable=False),
        sa.Column('last_name', sa.String(80), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('employee_code', sa.String(40)),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_people_org_id', 'people', ['org_id'])

    op.create_table(
        'materials',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('product_code', sa.String(100), nullable=False),
        sa.Column('material_type', sa.String(100), nullable=False),
        sa.Column('uom', sa.String(50), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_materials_product_code', 'materials', ['product_code'])
    op.create_index('ix_materials_org_id', 'materials', ['org_id'])

    op.create_table(
        'stock_areas',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location_code', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_stock_areas_org_id', 'stock_areas', ['org_id'])

    op.create_table(
        'inventory_units',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('material_id', UUID(as_uuid=True), sa.ForeignKey('materials.id'), nullable=False),
        sa.Column('serial_number', sa.String(100), unique=True),
        sa.Column('mac_id', sa.String(100), unique=True),
        sa.Column('location_type', location_type, nullable=False),
        sa.Column('stock_area_id', UUID(as_uuid=True), sa.ForeignKey('stock_areas.id')),
        sa.Column('holder_person_id', UUID(as_uuid=True), sa.ForeignKey('people.id')),
        sa.Column('status', inventory_unit_status, nullable=False),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_inventory_units_material_id', 'inventory_units', ['material_id'])
    op.create_index('ix_inventory_units_location', 'inventory_units', ['location_type', 'stock_area_id'])
    op.create_index('ix_inventory_units_status', 'inventory_units', ['status'])

    op.create_table(
        'material_requests',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('number', sa.String(50), unique=True),
        sa.Column('pr_numbers', sa.JSON()),
        sa.Column('status', material_request_status),
        sa.Column('requested_by_person_id', UUID(as_uuid=True), sa.ForeignKey('people.id'), nullable=False),
        sa.Column('approved_by_person_id', UUID(as_uuid=True), sa.ForeignKey('people.id')),
        sa.Column('requestor_id', UUID(as_uuid=True), sa.ForeignKey('people.id')),
        sa.Column('from_stock_area_id', UUID(as_uuid=True), sa.ForeignKey('stock_areas.id')),
        sa.Column('request_date', sa.Date()),
        sa.Column('ticket_id', sa.String(100)),
        sa.Column('remarks', sa.Text()),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('is_active', sa.Boolean()),
        sa.Column('submitted_at', sa.DateTime(timezone=True)),
        sa.Column('approved_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_material_requests_status', 'material_requests', ['status'])
    op.create_index('ix_material_requests_requested_by', 'material_requests', ['requested_by_person_id'])
    op.create_index('ix_material_requests_org_id', 'material_requests', ['org_id'])

    op.create_table(
        'material_request_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'material_request_id', UUID(as_uuid=True), sa.ForeignKey('material_requests.id'), nullable=False
        ),
        sa.Column('material_id', UUID(as_uuid=True), sa.ForeignKey('materials.id'), nullable=False),
        sa.Column('requested_quantity', sa.Integer(), nullable=False),
        sa.Column('approved_quantity', sa.Integer()),
        sa.Column('uom', sa.String(50), nullable=False),
        sa.Column('remarks', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.CheckConstraint('requested_quantity >= 1', name='ck_material_request_item_requested_positive'),
        sa.CheckConstraint(
            'approved_quantity IS NULL OR approved_quantity <= requested_quantity',
            name='ck_material_request_item_approved_le_requested',
        ),
    )
    op.create_index('ix_material_request_items_request_id', 'material_request_items', ['material_request_id'])

    op.create_table(
        'material_allocations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'material_request_id', UUID(as_uuid=True), sa.ForeignKey('material_requests.id'), nullable=False
        ),
        sa.Column(
            'material_request_item_id',
            UUID(as_uuid=True),
            sa.ForeignKey('material_request_items.id'),
            nullable=False,
        ),
        sa.Column('inventory_unit_id', UUID(as_uuid=True), sa.ForeignKey('inventory_units.id'), nullable=False),
        sa.Column('allocated_by_person_id', UUID(as_uuid=True), sa.ForeignKey('people.id')),
        sa.Column('allocated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', allocation_status, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_material_allocations_request_id', 'material_allocations', ['material_request_id'])
    op.create_index(
        'ix_material_allocations_item_status', 'material_allocations', ['material_request_item_id', 'status']
    )
    op.create_index('ix_material_allocations_unit_status', 'material_allocations', ['inventory_unit_id', 'status'])

    op.create_table(
        'audit_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(100), nullable=False),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('user_id', UUID(as_uuid=True)),
        sa.Column('changes', sa.JSON()),
        sa.Column('ip_address', sa.String(45)),
        sa.Column('user_agent', sa.Text()),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_occurred_at', 'audit_logs', ['occurred_at'])

    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('person_id', UUID(as_uuid=True), sa.ForeignKey('people.id'), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(255)),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', sa.String(100)),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_notifications_person_read', 'notifications', ['person_id', 'is_read'])
    op.create_index('ix_notifications_entity', 'notifications', ['entity_type', 'entity_id'])

    op.create_table(
        'event_store',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('event_type', sa.String(80), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(100), nullable=False),
        sa.Column('actor_id', UUID(as_uuid=True)),
        sa.Column('org_id', UUID(as_uuid=True)),
        sa.Column('payload', sa.JSON()),
        sa.Column('status', event_status, nullable=False),
        sa.Column('retry_count', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('processed_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_event_store_status_created_at', 'event_store', ['status', 'created_at'])
    op.create_index('ix_event_store_entity', 'event_store', ['entity_type', 'entity_id'])

    op.create_table(
        'document_sequences',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('key', sa.String(120), nullable=False, unique=True),
        sa.Column('next_value', sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('document_sequences')
    op.drop_table('event_store')
    op.drop_table('notifications')
    op.drop_table('audit_logs')
    op.drop_table('material_allocations')
    op.drop_table('material_request_items')
    op.drop_table('material_requests')
    op.drop_table('inventory_units')
    op.drop_table('stock_areas')
    op.drop_table('materials')
    op.drop_table('people')

    bind = op.get_bind()
    for enum_type in (
        event_status,
        notification_type,
        audit_action,
        allocation_status,
        material_request_status,
        inventory_unit_status,
        location_type,
    ):
        enum_type.drop(bind, checkfirst=True)
