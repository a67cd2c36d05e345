"""Switch an Elgato Key Light on while the camera is in use."""

__version__ = "1.0.0"
