from sqlalchemy import Column, BigInteger, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship
from sensorfleet.db.base_class import Base


class SensorReading(Base):
    __tablename__ = "sensor_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # references the sensor's external code, not its surrogate key
    sensor_id = Column(
        Integer,
        ForeignKey("sensors.sensor_code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    timestamp = Column(BigInteger, nullable=False, index=True)  # Unix seconds
    temperature_value = Column(Float, nullable=False)

    sensor = relationship("Sensor", back_populates="readings")
