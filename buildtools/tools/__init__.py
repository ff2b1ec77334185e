"""External toolchain coordination.

Key classes:
    ProcessRunner     - Spawns processes, streams and captures their output
    CommandResolver   - Strategy chain locating package-manager executables
    NodeToolsManager  - verify -> install -> build state machine
"""

from .node import NodeToolsManager, ToolState
from .process import CommandResult, OutputSink, ProcessRunner
from .resolver import (
    BareNameStrategy,
    CommandResolver,
    ResolutionStrategy,
    ResolvedCommand,
    RuntimeSiblingStrategy,
    default_strategies,
    wrapper_suffix,
)

__all__ = [
    "NodeToolsManager",
    "ToolState",
    "ProcessRunner",
    "CommandResult",
    "OutputSink",
    "CommandResolver",
    "ResolutionStrategy",
    "ResolvedCommand",
    "RuntimeSiblingStrategy",
    "BareNameStrategy",
    "default_strategies",
    "wrapper_suffix",
]
