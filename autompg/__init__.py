"""Tank fill measurement: record scale and COG sensor data, plot and summarise it."""

__version__ = "0.1.0"
__all__ = ["__version__"]