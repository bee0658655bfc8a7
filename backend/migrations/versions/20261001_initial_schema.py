"""Initial schema: franchises, catalog, sales, expenditures, revenue share, auth

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

This migration creates:
1. Users, roles and session tokens
2. Franchises (tenant root) and their admin fee settings
3. Products and sales (with product snapshots)
4. Expenditures
5. Profit sharing payments (one row per franchise per month)
6. Security events
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS & ROLES
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=False)

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_user_roles_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_roles')),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_roles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_roles_user_id'), ['user_id'], unique=False)

    # ==========================================================================
    # 2. FRANCHISES & ADMIN SETTINGS
    # ==========================================================================
    op.create_table('franchises',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('profit_sharing_percent', sa.Numeric(precision=5, scale=2), nullable=False, server_default='10'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_franchises_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_franchises')),
        sa.UniqueConstraint('user_id', name='uq_franchises_user_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('franchises', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_franchises_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_franchises_is_active'), ['is_active'], unique=False)

    op.create_table('admin_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=False),
        sa.Column('admin_fee_percent', sa.Numeric(precision=5, scale=2), nullable=False, server_default='5'),
        sa.Column('fixed_deduction', sa.Numeric(precision=15, scale=2), nullable=False, server_default='1000'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_admin_settings_franchise_id_franchises')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_settings')),
        sa.UniqueConstraint('franchise_id', name='uq_admin_settings_franchise'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('admin_settings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_admin_settings_franchise_id'), ['franchise_id'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_session_tokens_user_id_users')),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_session_tokens_franchise_id_franchises')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_session_tokens')),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 3. PRODUCTS & SALES
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('hpp', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0'),
        sa.Column('price', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_products_franchise_id_franchises')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_products')),
        sa.UniqueConstraint('franchise_id', 'code', name='uq_products_franchise_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index('ix_products_franchise_name', ['franchise_id', 'name'], unique=False)

    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_code', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_per_unit', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('hpp_per_unit', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_sales', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_hpp', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('discount_type', sa.String(length=16), nullable=False, server_default='none'),
        sa.Column('discount_value', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_sales_franchise_id_franchises')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name=op.f('fk_sales_product_id_products'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_sales')),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sales_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_product_id'), ['product_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_sales_franchise_created', ['franchise_id', 'created_at'], unique=False)

    # ==========================================================================
    # 4. EXPENDITURES
    # ==========================================================================
    op.create_table('expenditures',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('expenditure_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_expenditures_franchise_id_franchises')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_expenditures')),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('expenditures', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_expenditures_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_expenditures_expenditure_date'), ['expenditure_date'], unique=False)
        batch_op.create_index('ix_expenditures_franchise_date', ['franchise_id', 'expenditure_date'], unique=False)

    # ==========================================================================
    # 5. PROFIT SHARING PAYMENTS
    # ==========================================================================
    op.create_table('profit_sharing_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=False),
        sa.Column('period_month', sa.Integer(), nullable=False),
        sa.Column('period_year', sa.Integer(), nullable=False),
        sa.Column('total_revenue', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0'),
        sa.Column('profit_sharing_percent', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
        sa.Column('profit_sharing_amount', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='unpaid'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['franchise_id'], ['franchises.id'], name=op.f('fk_profit_sharing_payments_franchise_id_franchises')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_profit_sharing_payments')),
        sa.UniqueConstraint('franchise_id', 'period_month', 'period_year', name='uq_profit_sharing_payments_period'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('profit_sharing_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_profit_sharing_payments_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_profit_sharing_payments_payment_status'), ['payment_status'], unique=False)
        batch_op.create_index('ix_profit_sharing_payments_period', ['period_year', 'period_month'], unique=False)

    # ==========================================================================
    # 6. SECURITY EVENTS
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_security_events')),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_security_events_franchise_id'), ['franchise_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_event_type'), ['event_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_success'), ['success'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_occurred_at'), ['occurred_at'], unique=False)
        batch_op.create_index('ix_security_events_user_type', ['user_id', 'event_type'], unique=False)
        batch_op.create_index('ix_security_events_franchise_occurred', ['franchise_id', 'occurred_at'], unique=False)


def downgrade():
    op.drop_table('security_events')
    op.drop_table('profit_sharing_payments')
    op.drop_table('expenditures')
    op.drop_table('sales')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('admin_settings')
    op.drop_table('franchises')
    op.drop_table('user_roles')
    op.drop_table('users')
