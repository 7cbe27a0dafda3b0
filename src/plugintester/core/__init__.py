"""Core harness components for Plugintester."""

from .launcher import launch, resolve_selection
from .ports import DEFAULT_PORTS, PortAllocator
from .tester import CaseOutcome, OutcomeStatus, PluginTester, SuiteReport

__all__ = [
    "CaseOutcome",
    "DEFAULT_PORTS",
    "OutcomeStatus",
    "PluginTester",
    "PortAllocator",
    "SuiteReport",
    "launch",
    "resolve_selection",
]
