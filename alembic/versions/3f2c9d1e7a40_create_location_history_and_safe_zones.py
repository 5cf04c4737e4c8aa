"""create_location_history_and_safe_zones

Revision ID: 3f2c9d1e7a40
Revises:
Create Date: 2025-02-03 09:12:41

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f2c9d1e7a40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the append-only location history and the caregiver safe zones.

    location_history:
    - (CaregiverID, Timestamp) index for "last record" and summary queries
    - (CaregiverID, IsCheckpoint) index for checkpoint lookups
    - ConnectionStatus restricted to online / offline / low_battery
    """
    print("[MIGRATION] Creating location_history...")

    op.create_table(
        'location_history',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('CaregiverID', sa.String(length=100), nullable=False),
        sa.Column('Latitude', sa.Float(), nullable=False),
        sa.Column('Longitude', sa.Float(), nullable=False),
        sa.Column('Timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('BatteryLevel', sa.Float(), nullable=True),
        sa.Column('Speed', sa.Float(), nullable=True),
        sa.Column('Accuracy', sa.Float(), nullable=True),
        sa.Column('ConnectionStatus', sa.String(length=20), nullable=False),
        sa.Column('IsCheckpoint', sa.Boolean(), nullable=False),
        sa.Column('DistanceTraveled', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.CheckConstraint(
            '"ConnectionStatus" IN (\'online\', \'offline\', \'low_battery\')',
            name='check_connection_status'
        ),
        sa.CheckConstraint('"DistanceTraveled" >= 0', name='check_distance_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_location_history_CaregiverID'), 'location_history', ['CaregiverID'], unique=False)
    op.create_index('idx_caregiver_timestamp', 'location_history', ['CaregiverID', 'Timestamp'], unique=False)
    op.create_index('idx_caregiver_checkpoint', 'location_history', ['CaregiverID', 'IsCheckpoint'], unique=False)

    print("[MIGRATION] Creating safe_zones...")

    op.create_table(
        'safe_zones',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('caregiver_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('radius', sa.Float(), nullable=False),
        sa.Column('alert_on_entry', sa.Boolean(), nullable=False),
        sa.Column('alert_on_exit', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.CheckConstraint('radius > 0', name='check_radius_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_safe_zones_caregiver_id'), 'safe_zones', ['caregiver_id'], unique=False)

    print("[MIGRATION] Tables created successfully")


def downgrade() -> None:
    print("[MIGRATION] Dropping safe_zones and location_history...")

    op.drop_index(op.f('ix_safe_zones_caregiver_id'), table_name='safe_zones')
    op.drop_table('safe_zones')

    op.drop_index('idx_caregiver_checkpoint', table_name='location_history')
    op.drop_index('idx_caregiver_timestamp', table_name='location_history')
    op.drop_index(op.f('ix_location_history_CaregiverID'), table_name='location_history')
    op.drop_table('location_history')
