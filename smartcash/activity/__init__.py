"""Activity logging package."""

from smartcash.activity.logger import ActivityLogger

__all__ = ["ActivityLogger"]
