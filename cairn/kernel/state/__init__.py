"""Application state - published projects, funding history and the current session."""

from cairn.kernel.state.project_store import ProjectSnapshot, ProjectStore
from cairn.kernel.state.session import SessionState

__all__ = ["ProjectSnapshot", "ProjectStore", "SessionState"]
