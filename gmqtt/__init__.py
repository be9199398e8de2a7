"""MQTT 3.1.1 and 5.0 packet codec, properties, topic helpers, a bitmap and a PID file."""

__version__ = "0.1.0"