"""Django app that exposes map layers as MapML documents."""

__version__ = "1.0"
