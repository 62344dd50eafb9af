"""Docker stats exporter for Prometheus and InfluxDB."""

__version__ = "0.1.0"
