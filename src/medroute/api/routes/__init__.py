"""Route group exports."""

from . import emergency, health

__all__ = ["emergency", "health"]
