"""Progress reporting adapters."""

from ldpm.progress.rich_progress import RichProgressReporter


__all__ = ["RichProgressReporter"]
