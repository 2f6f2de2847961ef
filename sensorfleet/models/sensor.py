import enum
import time

from sqlalchemy import Column, BigInteger, Integer, String
from sqlalchemy.orm import relationship
from sensorfleet.db.base_class import Base


class Face(str, enum.Enum):
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


FACES = tuple(f.value for f in Face)


class Sensor(Base):
    __tablename__ = "sensors"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sensor_code = Column(Integer, unique=True, nullable=False)
    face = Column(String(10), nullable=False)   # one of FACES
    installed_at = Column(BigInteger, nullable=False, default=lambda: int(time.time()))  # Unix seconds
    status = Column(String(20), default="active", server_default="active")

    # ON DELETE CASCADE is enforced by the database, not by the ORM
    readings = relationship(
        "SensorReading",
        back_populates="sensor",
        passive_deletes=True,
    )
