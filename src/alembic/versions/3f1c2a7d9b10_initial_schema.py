"""initial schema: branches, tables, time slots, reservations, orders

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import fastapi_users_db_sqlalchemy
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum('EMPLOYEE', 'MANAGER', 'ADMIN', name='user_role')
TABLE_STATUS = sa.Enum(
    'EMPTY', 'OCCUPIED', 'RESERVED', 'CLEANING', name='table_status'
)
RESERVATION_STATUS = sa.Enum(
    'PENDING',
    'CONFIRMED',
    'SEATED',
    'COMPLETED',
    'CANCELED',
    'NO_SHOW',
    name='reservation_status',
)
ORDER_TYPE = sa.Enum('DINE_IN', 'TAKE_AWAY', 'DELIVERY', name='order_type')
ORDER_STATUS = sa.Enum(
    'PENDING', 'IN_PROGRESS', 'COMPLETED', 'CANCELED', name='order_status'
)


def _base_columns(with_id: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            'is_active',
            sa.Boolean(),
            server_default=sa.text('true'),
            nullable=False,
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
    ]
    if with_id:
        columns.insert(0, sa.Column('id', sa.UUID(), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user',
        sa.Column('username', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column(
            'role',
            USER_ROLE,
            server_default='EMPLOYEE',
            nullable=False,
        ),
        sa.Column(
            'id',
            fastapi_users_db_sqlalchemy.generics.GUID(),
            nullable=False,
        ),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        *_base_columns(with_id=False),
        sa.CheckConstraint('phone IS NOT NULL OR email IS NOT NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(
        op.f('ix_user_username'), 'user', ['username'], unique=True
    )

    op.create_table(
        'branch',
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('address', sa.String(length=300), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'timezone',
            sa.String(length=64),
            server_default='UTC',
            nullable=False,
        ),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_branch_name'), 'branch', ['name'], unique=True)

    op.create_table(
        'table',
        sa.Column('branch_id', sa.UUID(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column(
            'is_shared',
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column('status', TABLE_STATUS, nullable=True),
        *_base_columns(),
        sa.CheckConstraint(
            'capacity > 0', name='ck_table_capacity_positive'
        ),
        sa.ForeignKeyConstraint(
            ['branch_id'], ['branch.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'branch_id', 'number', name='uq_table_number_per_branch'
        ),
    )
    op.create_index(
        op.f('ix_table_branch_id'), 'table', ['branch_id'], unique=False
    )

    op.create_table(
        'timeslot',
        sa.Column('branch_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('days_of_week', sa.JSON(), nullable=False),
        sa.Column(
            'price_per_person',
            sa.Numeric(precision=10, scale=2),
            nullable=True,
        ),
        sa.Column('customer_limit', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('more_info_url', sa.String(length=500), nullable=True),
        *_base_columns(),
        sa.CheckConstraint(
            'start_time < end_time', name='ck_time_slot_interval'
        ),
        sa.CheckConstraint(
            'customer_limit IS NULL OR customer_limit > 0',
            name='ck_time_slot_customer_limit',
        ),
        sa.ForeignKeyConstraint(
            ['branch_id'], ['branch.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_timeslot_branch_id'), 'timeslot', ['branch_id'], unique=False
    )

    op.create_table(
        'timeslottable',
        sa.Column('time_slot_id', sa.UUID(), nullable=False),
        sa.Column('table_id', sa.UUID(), nullable=False),
        sa.Column(
            'is_exclusive',
            sa.Boolean(),
            server_default=sa.true(),
            nullable=False,
        ),
        *_base_columns(with_id=False),
        sa.ForeignKeyConstraint(
            ['table_id'], ['table.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['time_slot_id'], ['timeslot.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('time_slot_id', 'table_id'),
    )
    op.create_index(
        op.f('ix_timeslottable_table_id'),
        'timeslottable',
        ['table_id'],
        unique=False,
    )

    op.create_table(
        'reservation',
        sa.Column('branch_id', sa.UUID(), nullable=False),
        sa.Column('customer_name', sa.String(length=128), nullable=False),
        sa.Column('customer_email', sa.String(length=320), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot_id', sa.UUID(), nullable=True),
        sa.Column('exact_time', sa.Time(), nullable=True),
        sa.Column('people', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            RESERVATION_STATUS,
            server_default='PENDING',
            nullable=False,
        ),
        sa.Column('dietary_restrictions', sa.Text(), nullable=True),
        sa.Column('accessibility_needs', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'created_by',
            sa.String(length=128),
            server_default='WEB',
            nullable=False,
        ),
        *_base_columns(),
        sa.CheckConstraint(
            'people > 0', name='ck_reservation_people_positive'
        ),
        sa.ForeignKeyConstraint(
            ['branch_id'], ['branch.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['time_slot_id'], ['timeslot.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_reservation_branch_date_status',
        'reservation',
        ['branch_id', 'date', 'status'],
        unique=False,
    )
    op.create_index(
        'ix_reservation_date_time_slot',
        'reservation',
        ['date', 'time_slot_id'],
        unique=False,
    )

    op.create_table(
        'reservationtable',
        sa.Column('reservation_id', sa.UUID(), nullable=False),
        sa.Column('table_id', sa.UUID(), nullable=False),
        *_base_columns(with_id=False),
        sa.ForeignKeyConstraint(
            ['reservation_id'], ['reservation.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['table_id'], ['table.id'], ondelete='RESTRICT'
        ),
        sa.PrimaryKeyConstraint('reservation_id', 'table_id'),
    )
    op.create_index(
        op.f('ix_reservationtable_table_id'),
        'reservationtable',
        ['table_id'],
        unique=False,
    )

    op.create_table(
        'order',
        sa.Column('branch_id', sa.UUID(), nullable=False),
        sa.Column('table_id', sa.UUID(), nullable=True),
        sa.Column('public_code', sa.String(length=16), nullable=False),
        sa.Column('type', ORDER_TYPE, nullable=False),
        sa.Column(
            'status',
            ORDER_STATUS,
            server_default='PENDING',
            nullable=False,
        ),
        sa.Column('party_size', sa.Integer(), nullable=False),
        *_base_columns(),
        sa.CheckConstraint(
            'party_size > 0', name='ck_order_party_size_positive'
        ),
        sa.ForeignKeyConstraint(
            ['branch_id'], ['branch.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['table_id'], ['table.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_code'),
    )
    op.create_index(
        op.f('ix_order_branch_id'), 'order', ['branch_id'], unique=False
    )
    op.create_index(
        op.f('ix_order_table_id'), 'order', ['table_id'], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_order_table_id'), table_name='order')
    op.drop_index(op.f('ix_order_branch_id'), table_name='order')
    op.drop_table('order')
    op.drop_index(
        op.f('ix_reservationtable_table_id'), table_name='reservationtable'
    )
    op.drop_table('reservationtable')
    op.drop_index('ix_reservation_date_time_slot', table_name='reservation')
    op.drop_index(
        'ix_reservation_branch_date_status', table_name='reservation'
    )
    op.drop_table('reservation')
    op.drop_index(
        op.f('ix_timeslottable_table_id'), table_name='timeslottable'
    )
    op.drop_table('timeslottable')
    op.drop_index(op.f('ix_timeslot_branch_id'), table_name='timeslot')
    op.drop_table('timeslot')
    op.drop_index(op.f('ix_table_branch_id'), table_name='table')
    op.drop_table('table')
    op.drop_index(op.f('ix_branch_name'), table_name='branch')
    op.drop_table('branch')
    op.drop_index(op.f('ix_user_username'), table_name='user')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
    for enum in (
        ORDER_STATUS,
        ORDER_TYPE,
        RESERVATION_STATUS,
        TABLE_STATUS,
        USER_ROLE,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
