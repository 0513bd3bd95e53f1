from .project_watcher import ProjectWatcher

__all__ = ["ProjectWatcher"]
