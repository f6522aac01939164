"""Initial NutriSense schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2024-06-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('height_cm', sa.Float(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('activity_level', sa.String(length=20), nullable=False),
        sa.Column('health_goals', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create expense_items table
    op.create_table('expense_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_expense_items_id'), 'expense_items', ['id'], unique=False)
    op.create_index(op.f('ix_expense_items_user_id'), 'expense_items', ['user_id'], unique=False)
    op.create_index(op.f('ix_expense_items_expiry_date'), 'expense_items', ['expiry_date'], unique=False)

    # Create nutrition_profiles table
    op.create_table('nutrition_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('expense_item_id', sa.String(length=36), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('serving_size_g', sa.Float(), nullable=True),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('protein_g', sa.Float(), nullable=True),
        sa.Column('carbs_g', sa.Float(), nullable=True),
        sa.Column('fat_g', sa.Float(), nullable=True),
        sa.Column('fiber_g', sa.Float(), nullable=True),
        sa.Column('sugar_g', sa.Float(), nullable=True),
        sa.Column('sodium_mg', sa.Float(), nullable=True),
        sa.Column('ai_confidence_score', sa.Float(), nullable=True),
        sa.Column('raw_label_text', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['expense_item_id'], ['expense_items.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_nutrition_profiles_id'), 'nutrition_profiles', ['id'], unique=False)
    op.create_index(op.f('ix_nutrition_profiles_expense_item_id'), 'nutrition_profiles', ['expense_item_id'], unique=False)
    op.create_index(op.f('ix_nutrition_profiles_created_at'), 'nutrition_profiles', ['created_at'], unique=False)

    # Create daily_nutrition_logs table
    op.create_table('daily_nutrition_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('expense_item_id', sa.String(length=36), nullable=False),
        sa.Column('log_date', sa.Date(), nullable=False),
        sa.Column('logged_at', sa.DateTime(), nullable=False),
        sa.Column('consumed_servings', sa.Float(), nullable=False),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('protein_g', sa.Float(), nullable=True),
        sa.Column('carbs_g', sa.Float(), nullable=True),
        sa.Column('fat_g', sa.Float(), nullable=True),
        sa.Column('fiber_g', sa.Float(), nullable=True),
        sa.Column('sugar_g', sa.Float(), nullable=True),
        sa.Column('sodium_mg', sa.Float(), nullable=True),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['expense_item_id'], ['expense_items.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_daily_nutrition_logs_id'), 'daily_nutrition_logs', ['id'], unique=False)
    op.create_index(op.f('ix_daily_nutrition_logs_user_id'), 'daily_nutrition_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_daily_nutrition_logs_expense_item_id'), 'daily_nutrition_logs', ['expense_item_id'], unique=False)
    op.create_index(op.f('ix_daily_nutrition_logs_log_date'), 'daily_nutrition_logs', ['log_date'], unique=False)
    op.create_index(op.f('ix_daily_nutrition_logs_logged_at'), 'daily_nutrition_logs', ['logged_at'], unique=False)

    # Create nutrition_analytics_snapshots table
    op.create_table('nutrition_analytics_snapshots',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('from_ts', sa.DateTime(), nullable=False),
        sa.Column('to_ts', sa.DateTime(), nullable=False),
        sa.Column('reliability_score', sa.Float(), nullable=False),
        sa.Column('coverage_score', sa.Float(), nullable=False),
        sa.Column('anomaly_count', sa.Integer(), nullable=False),
        sa.Column('metrics', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_nutrition_analytics_snapshots_id'), 'nutrition_analytics_snapshots', ['id'], unique=False)
    op.create_index(op.f('ix_nutrition_analytics_snapshots_user_id'), 'nutrition_analytics_snapshots', ['user_id'], unique=False)
    op.create_index(op.f('ix_nutrition_analytics_snapshots_to_ts'), 'nutrition_analytics_snapshots', ['to_ts'], unique=False)

    # Create consumption_models table
    op.create_table('consumption_models',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('expense_item_id', sa.String(length=36), nullable=False),
        sa.Column('avg_daily_servings', sa.Float(), nullable=False),
        sa.Column('trend_slope', sa.Float(), nullable=False),
        sa.Column('variability', sa.Float(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('last_predicted_depletion', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['expense_item_id'], ['expense_items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'expense_item_id', name='uq_consumption_model_user_item')
    )
    op.create_index(op.f('ix_consumption_models_id'), 'consumption_models', ['id'], unique=False)
    op.create_index(op.f('ix_consumption_models_user_id'), 'consumption_models', ['user_id'], unique=False)
    op.create_index(op.f('ix_consumption_models_expense_item_id'), 'consumption_models', ['expense_item_id'], unique=False)

    # Create health_alerts table
    op.create_table('health_alerts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('alert_type', sa.String(length=30), nullable=False),
        sa.Column('nutrient_key', sa.String(length=64), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('target_value', sa.Float(), nullable=True),
        sa.Column('severity', sa.String(length=10), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('triggered_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_health_alerts_id'), 'health_alerts', ['id'], unique=False)
    op.create_index(op.f('ix_health_alerts_user_id'), 'health_alerts', ['user_id'], unique=False)
    op.create_index(op.f('ix_health_alerts_alert_type'), 'health_alerts', ['alert_type'], unique=False)
    op.create_index(op.f('ix_health_alerts_is_read'), 'health_alerts', ['is_read'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order due to foreign key constraints
    op.drop_index(op.f('ix_health_alerts_is_read'), table_name='health_alerts')
    op.drop_index(op.f('ix_health_alerts_alert_type'), table_name='health_alerts')
    op.drop_index(op.f('ix_health_alerts_user_id'), table_name='health_alerts')
    op.drop_index(op.f('ix_health_alerts_id'), table_name='health_alerts')
    op.drop_table('health_alerts')

    op.drop_index(op.f('ix_consumption_models_expense_item_id'), table_name='consumption_models')
    op.drop_index(op.f('ix_consumption_models_user_id'), table_name='consumption_models')
    op.drop_index(op.f('ix_consumption_models_id'), table_name='consumption_models')
    op.drop_table('consumption_models')

    op.drop_index(op.f('ix_nutrition_analytics_snapshots_to_ts'), table_name='nutrition_analytics_snapshots')
    op.drop_index(op.f('ix_nutrition_analytics_snapshots_user_id'), table_name='nutrition_analytics_snapshots')
    op.drop_index(op.f('ix_nutrition_analytics_snapshots_id'), table_name='nutrition_analytics_snapshots')
    op.drop_table('nutrition_analytics_snapshots')

    op.drop_index(op.f('ix_daily_nutrition_logs_logged_at'), table_name='daily_nutrition_logs')
    op.drop_index(op.f('ix_daily_nutrition_logs_log_date'), table_name='daily_nutrition_logs')
    op.drop_index(op.f('ix_daily_nutrition_logs_expense_item_id'), table_name='daily_nutrition_logs')
    op.drop_index(op.f('ix_daily_nutrition_logs_user_id'), table_name='daily_nutrition_logs')
    op.drop_index(op.f('ix_daily_nutrition_logs_id'), table_name='daily_nutrition_logs')
    op.drop_table('daily_nutrition_logs')

    op.drop_index(op.f('ix_nutrition_profiles_created_at'), table_name='nutrition_profiles')
    op.drop_index(op.f('ix_nutrition_profiles_expense_item_id'), table_name='nutrition_profiles')
    op.drop_index(op.f('ix_nutrition_profiles_id'), table_name='nutrition_profiles')
    op.drop_table('nutrition_profiles')

    op.drop_index(op.f('ix_expense_items_expiry_date'), table_name='expense_items')
    op.drop_index(op.f('ix_expense_items_user_id'), table_name='expense_items')
    op.drop_index(op.f('ix_expense_items_id'), table_name='expense_items')
    op.drop_table('expense_items')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
