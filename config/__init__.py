from .settings import Settings, WorkingBand, settings

__all__ = ["Settings", "WorkingBand", "settings"]
