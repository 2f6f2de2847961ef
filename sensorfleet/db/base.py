from sensorfleet.db.base_class import Base

# Import all models here for Alembic
from sensorfleet.models.sensor import Sensor
from sensorfleet.models.sensor_reading import SensorReading
