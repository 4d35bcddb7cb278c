"""Activity logging package."""

from daybook.audit.logger import ActivityLogger, create_correlation_id

__all__ = ["ActivityLogger", "create_correlation_id"]
