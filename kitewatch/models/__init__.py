# Models module - domain data
from .build import Build, BuildRef, User, format_duration
from .diagnostic import DiagnosticCode, DiagnosticEntry, DiagnosticLevel
from .state import BuildState, StateKind
from .steps import BuildStep, BuildStepGroup, group_steps

__all__ = [
    "Build",
    "BuildRef",
    "BuildState",
    "BuildStep",
    "BuildStepGroup",
    "DiagnosticCode",
    "DiagnosticEntry",
    "DiagnosticLevel",
    "StateKind",
    "User",
    "format_duration",
    "group_steps",
]
