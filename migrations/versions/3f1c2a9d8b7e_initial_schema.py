"""Initial schema

Revision ID: 3f1c2a9d8b7e
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d8b7e'
down_revision = None
branch_labels = None
depends_on = None


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True)


def upgrade():
    op.create_table(
        'shubo_raw_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_number', sa.Integer(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('brewing_scale', sa.Integer(), nullable=True),
        sa.Column('pour_date', sa.String(length=50), nullable=True),
        sa.Column('brewing_category', sa.String(length=50), nullable=True),
        sa.Column('tank_number', sa.Integer(), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('koji_rice_variety', sa.String(length=100), nullable=True),
        sa.Column('kake_rice_variety', sa.String(length=100), nullable=True),
        sa.Column('shubo_total_rice', sa.Integer(), nullable=True),
        sa.Column('shubo_start_date', sa.Date(), nullable=True),
        sa.Column('shubo_end_date', sa.Date(), nullable=True),
        sa.Column('shubo_days', sa.Integer(), nullable=True),
        sa.Column('yeast', sa.String(length=100), nullable=True),
        sa.Column('shubo_storage', sa.String(length=100), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_number', 'fiscal_year', name='uq_raw_number_year'),
    )
    op.create_index(op.f('ix_shubo_raw_data_shubo_number'), 'shubo_raw_data', ['shubo_number'])
    op.create_index(op.f('ix_shubo_raw_data_fiscal_year'), 'shubo_raw_data', ['fiscal_year'])

    op.create_table(
        'shubo_configured_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_number', sa.Integer(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('selected_tank_id', sa.String(length=50), nullable=False),
        sa.Column('shubo_type', sa.String(length=50), nullable=False),
        sa.Column('shubo_start_date', sa.Date(), nullable=False),
        sa.Column('shubo_end_date', sa.Date(), nullable=False),
        sa.Column('shubo_days', sa.Integer(), nullable=True),
        sa.Column('display_name', sa.String(length=50), nullable=True),
        sa.Column('recipe_data', sa.JSON(), nullable=True),
        sa.Column('original_data', sa.JSON(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_number', 'fiscal_year', name='uq_configured_number_year'),
    )
    op.create_index(op.f('ix_shubo_configured_data_shubo_number'), 'shubo_configured_data', ['shubo_number'])
    op.create_index(op.f('ix_shubo_configured_data_fiscal_year'), 'shubo_configured_data', ['fiscal_year'])

    op.create_table(
        'shubo_recipe_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_type', sa.String(length=50), nullable=False),
        sa.Column('recipe_brewing_scale', sa.Integer(), nullable=False),
        sa.Column('recipe_total_rice', sa.Float(), nullable=True),
        sa.Column('steamed_rice', sa.Float(), nullable=True),
        sa.Column('koji_rice', sa.Float(), nullable=True),
        sa.Column('water', sa.Float(), nullable=True),
        sa.Column('measurement', sa.Float(), nullable=True),
        sa.Column('lactic_acid', sa.Float(), nullable=True),
        *[
            sa.Column(f'{stage}_{name}', sa.Float(), nullable=True)
            for stage in ('first', 'middle', 'final')
            for name in ('total_rice', 'kake_rice', 'koji_rice', 'water')
        ],
        sa.Column('three_stage_total_rice', sa.Float(), nullable=True),
        sa.Column('water_ratio_to_final', sa.Float(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_type', 'recipe_brewing_scale', name='uq_recipe_type_scale'),
    )
    op.create_index(op.f('ix_shubo_recipe_data_shubo_type'), 'shubo_recipe_data', ['shubo_type'])

    op.create_table(
        'tank_conversions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('kensyaku', sa.Float(), nullable=False),
        sa.Column('capacity', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tank_id', 'kensyaku', name='uq_tank_kensyaku'),
    )
    op.create_index(op.f('ix_tank_conversions_tank_id'), 'tank_conversions', ['tank_id'])

    op.create_table(
        'shubo_tank_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tank_id', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('max_capacity', sa.Float(), nullable=True),
        sa.Column('is_enabled', sa.Boolean(), nullable=True),
        sa.Column('is_recommended', sa.Boolean(), nullable=True),
        sa.Column('current_status', sa.String(length=20), nullable=True),
        sa.Column('available_date', sa.Date(), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_shubo_tank_config_tank_id'), 'shubo_tank_config', ['tank_id'], unique=True)

    op.create_table(
        'shubo_daily_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_number', sa.Integer(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(length=20), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=True),
        sa.Column('day_label', sa.String(length=50), nullable=True),
        sa.Column('temperature1', sa.Float(), nullable=True),
        sa.Column('temperature2', sa.Float(), nullable=True),
        sa.Column('temperature3', sa.Float(), nullable=True),
        sa.Column('baume', sa.Float(), nullable=True),
        sa.Column('acidity', sa.Float(), nullable=True),
        sa.Column('alcohol', sa.Float(), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('is_analysis_day', sa.Boolean(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_number', 'fiscal_year', 'record_date', 'time_slot', name='uq_daily_record_key'),
    )
    op.create_index(op.f('ix_shubo_daily_records_shubo_number'), 'shubo_daily_records', ['shubo_number'])
    op.create_index(op.f('ix_shubo_daily_records_fiscal_year'), 'shubo_daily_records', ['fiscal_year'])

    op.create_table(
        'shubo_daily_environment',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Float(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_shubo_daily_environment_date'), 'shubo_daily_environment', ['date'], unique=True)

    op.create_table(
        'shubo_brewing_preparation',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_number', sa.Integer(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('ice_amount', sa.Float(), nullable=True),
        sa.Column('after_brewing_kensyaku', sa.Float(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_number', 'fiscal_year', name='uq_preparation_number_year'),
    )
    op.create_index(op.f('ix_shubo_brewing_preparation_shubo_number'), 'shubo_brewing_preparation', ['shubo_number'])

    op.create_table(
        'shubo_discharge_schedule',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shubo_number', sa.Integer(), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('discharge_index', sa.Integer(), nullable=False),
        sa.Column('before_discharge_kensyaku', sa.Float(), nullable=True),
        sa.Column('after_discharge_capacity', sa.Float(), nullable=True),
        sa.Column('destination_tank', sa.String(length=50), nullable=True),
        sa.Column('ice_amount', sa.Float(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shubo_number', 'fiscal_year', 'discharge_index', name='uq_discharge_key'),
    )
    op.create_index(op.f('ix_shubo_discharge_schedule_shubo_number'), 'shubo_discharge_schedule', ['shubo_number'])

    op.create_table(
        'csv_update_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('update_date', sa.Date(), nullable=False),
        sa.Column('executed_at', sa.DateTime(), nullable=True),
        sa.Column('updated_count', sa.Integer(), nullable=True),
        sa.Column('kept_count', sa.Integer(), nullable=True),
        sa.Column('filename', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_settings_key'), 'settings', ['key'], unique=True)


def downgrade():
    op.drop_index(op.f('ix_settings_key'), table_name='settings')
    op.drop_table('settings')
    op.drop_table('csv_update_history')
    op.drop_index(op.f('ix_shubo_discharge_schedule_shubo_number'), table_name='shubo_discharge_schedule')
    op.drop_table('shubo_discharge_schedule')
    op.drop_index(op.f('ix_shubo_brewing_preparation_shubo_number'), table_name='shubo_brewing_preparation')
    op.drop_table('shubo_brewing_preparation')
    op.drop_index(op.f('ix_shubo_daily_environment_date'), table_name='shubo_daily_environment')
    op.drop_table('shubo_daily_environment')
    op.drop_index(op.f('ix_shubo_daily_records_fiscal_year'), table_name='shubo_daily_records')
    op.drop_index(op.f('ix_shubo_daily_records_shubo_number'), table_name='shubo_daily_records')
    op.drop_table('shubo_daily_records')
    op.drop_index(op.f('ix_shubo_tank_config_tank_id'), table_name='shubo_tank_config')
    op.drop_table('shubo_tank_config')
    op.drop_index(op.f('ix_tank_conversions_tank_id'), table_name='tank_conversions')
    op.drop_table('tank_conversions')
    op.drop_index(op.f('ix_shubo_recipe_data_shubo_type'), table_name='shubo_recipe_data')
    op.drop_table('shubo_recipe_data')
    op.drop_index(op.f('ix_shubo_configured_data_fiscal_year'), table_name='shubo_configured_data')
    op.drop_index(op.f('ix_shubo_configured_data_shubo_number'), table_name='shubo_configured_data')
    op.drop_table('shubo_configured_data')
    op.drop_index(op.f('ix_shubo_raw_data_fiscal_year'), table_name='shubo_raw_data')
    op.drop_index(op.f('ix_shubo_raw_data_shubo_number'), table_name='shubo_raw_data')
    op.drop_table('shubo_raw_data')
