"""create sensors and sensor_data tables

Revision ID: 0001
Revises:
Create Date: 2025-03-22 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sensors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sensor_code", sa.Integer(), nullable=False, unique=True),
        sa.Column("face", sa.String(length=10), nullable=False),
        sa.Column("installed_at", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="active"),
    )
    op.create_index("ix_sensors_id", "sensors", ["id"])

    op.create_table(
        "sensor_data",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "sensor_id",
            sa.Integer(),
            sa.ForeignKey("sensors.sensor_code", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("temperature_value", sa.Float(), nullable=False),
    )
    op.create_index("ix_sensor_data_sensor_id", "sensor_data", ["sensor_id"])
    op.create_index("ix_sensor_data_timestamp", "sensor_data", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_sensor_data_timestamp", table_name="sensor_data")
    op.drop_index("ix_sensor_data_sensor_id", table_name="sensor_data")
    op.drop_table("sensor_data")
    op.drop_index("ix_sensors_id", table_name="sensors")
    op.drop_table("sensors")
