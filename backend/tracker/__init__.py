"""Task tracker: tasks, epics and subtasks with overlap-free scheduling."""

__version__ = "0.1.0"
