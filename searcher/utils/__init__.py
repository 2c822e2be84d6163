from .progress import IDLE, ProgressBar, ProgressMonitor, ProgressTracker

__all__ = ["IDLE", "ProgressBar", "ProgressMonitor", "ProgressTracker"]
