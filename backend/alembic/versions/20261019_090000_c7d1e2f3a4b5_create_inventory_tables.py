"""create inventory tables

Revision ID: c7d1e2f3a4b5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'c7d1e2f3a4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'fuel_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_fuel_types_id'), 'fuel_types', ['id'], unique=False)
    op.create_index(op.f('ix_fuel_types_code'), 'fuel_types', ['code'], unique=True)

    op.create_table(
        'trading_points',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('network_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_trading_points_id'), 'trading_points', ['id'], unique=False)
    op.create_index(op.f('ix_trading_points_network_id'), 'trading_points', ['network_id'], unique=False)

    op.create_table(
        'tanks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('trading_point_id', sa.Integer(), nullable=False),
        sa.Column('fuel_type_id', sa.Integer(), nullable=True),
        sa.Column('equipment_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('capacity', sa.Float(), nullable=False),
        sa.Column('min_volume', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_volume', sa.Float(), nullable=True),
        sa.Column('current_volume', sa.Float(), nullable=False, server_default='0'),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('density', sa.Float(), nullable=True),
        sa.Column('water_level', sa.Float(), nullable=True),
        sa.Column('last_measurement', sa.DateTime(), nullable=True),
        sa.Column('last_calibration', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['trading_point_id'], ['trading_points.id']),
        sa.ForeignKeyConstraint(['fuel_type_id'], ['fuel_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('trading_point_id', 'code', name='uq_tanks_trading_point_code'),
        sa.CheckConstraint('capacity > 0', name='check_capacity_positive'),
        sa.CheckConstraint(
            'current_volume >= 0 AND current_volume <= capacity',
            name='check_volume_within_capacity',
        ),
        sa.CheckConstraint(
            "status IN ('active', 'maintenance', 'error', 'offline')",
            name='check_tank_status',
        ),
    )
    op.create_index(op.f('ix_tanks_id'), 'tanks', ['id'], unique=False)
    op.create_index(op.f('ix_tanks_trading_point_id'), 'tanks', ['trading_point_id'], unique=False)
    op.create_index(op.f('ix_tanks_fuel_type_id'), 'tanks', ['fuel_type_id'], unique=False)
    op.create_index(op.f('ix_tanks_last_measurement'), 'tanks', ['last_measurement'], unique=False)

    op.create_table(
        'fuel_measurement_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tank_id', sa.Integer(), nullable=False),
        sa.Column('fuel_type_id', sa.Integer(), nullable=True),
        sa.Column('volume', sa.Float(), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('density', sa.Float(), nullable=True),
        sa.Column('water_level', sa.Float(), nullable=True),
        sa.Column('measurement_method', sa.String(length=30), nullable=False),
        sa.Column('measured_by', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id']),
        sa.ForeignKeyConstraint(['fuel_type_id'], ['fuel_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('volume >= 0', name='check_measurement_volume_non_negative'),
    )
    op.create_index(op.f('ix_fuel_measurement_history_id'), 'fuel_measurement_history', ['id'], unique=False)
    op.create_index(op.f('ix_fuel_measurement_history_tank_id'), 'fuel_measurement_history', ['tank_id'], unique=False)
    op.create_index(
        op.f('ix_fuel_measurement_history_fuel_type_id'), 'fuel_measurement_history', ['fuel_type_id'], unique=False
    )
    op.create_index(
        'ix_fuel_measurement_history_tank_created', 'fuel_measurement_history', ['tank_id', 'created_at'], unique=False
    )

    op.create_table(
        'tank_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tank_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(length=100), nullable=True),
        sa.Column('severity', sa.String(length=20), nullable=False, server_default='info'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tank_id'], ['tanks.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_tank_events_id'), 'tank_events', ['id'], unique=False)
    op.create_index(op.f('ix_tank_events_tank_id'), 'tank_events', ['tank_id'], unique=False)
    op.create_index(op.f('ix_tank_events_event_type'), 'tank_events', ['event_type'], unique=False)
    op.create_index('ix_tank_events_tank_created', 'tank_events', ['tank_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_tank_events_tank_created', table_name='tank_events')
    op.drop_index(op.f('ix_tank_events_event_type'), table_name='tank_events')
    op.drop_index(op.f('ix_tank_events_tank_id'), table_name='tank_events')
    op.drop_index(op.f('ix_tank_events_id'), table_name='tank_events')
    op.drop_table('tank_events')

    op.drop_index('ix_fuel_measurement_history_tank_created', table_name='fuel_measurement_history')
    op.drop_index(op.f('ix_fuel_measurement_history_fuel_type_id'), table_name='fuel_measurement_history')
    op.drop_index(op.f('ix_fuel_measurement_history_tank_id'), table_name='fuel_measurement_history')
    op.drop_index(op.f('ix_fuel_measurement_history_id'), table_name='fuel_measurement_history')
    op.drop_table('fuel_measurement_history')

    op.drop_index(op.f('ix_tanks_last_measurement'), table_name='tanks')
    op.drop_index(op.f('ix_tanks_fuel_type_id'), table_name='tanks')
    op.drop_index(op.f('ix_tanks_trading_point_id'), table_name='tanks')
    op.drop_index(op.f('ix_tanks_id'), table_name='tanks')
    op.drop_table('tanks')

    op.drop_index(op.f('ix_trading_points_network_id'), table_name='trading_points')
    op.drop_index(op.f('ix_trading_points_id'), table_name='trading_points')
    op.drop_table('trading_points')

    op.drop_index(op.f('ix_fuel_types_code'), table_name='fuel_types')
    op.drop_index(op.f('ix_fuel_types_id'), table_name='fuel_types')
    op.drop_table('fuel_types')
