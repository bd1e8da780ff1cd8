"""Task board with list and calendar views over a synchronized task collection."""

__version__ = "0.1.0"
