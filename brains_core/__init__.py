"""Plugin runtime core for the brains host: lifecycle, messaging, permissions and commands."""

__version__ = "0.1.0"
