# State module - tracked builds and diagnostics
from .builds import TrackedBuilds, Transition, cap_completed, sort_builds
from .diagnostics import DiagnosticLog

__all__ = ["DiagnosticLog", "TrackedBuilds", "Transition", "cap_completed", "sort_builds"]
