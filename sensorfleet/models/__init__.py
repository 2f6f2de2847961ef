from sensorfleet.models.sensor import Sensor, Face, FACES
from sensorfleet.models.sensor_reading import SensorReading

__all__ = [
    "Sensor",
    "SensorReading",
    "Face",
    "FACES",
]
