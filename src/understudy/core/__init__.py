"""Interception engine: discovery, recording, matching and behaviour overrides."""

from understudy.core.behavior import BehaviorOverride, RuleScope
from understudy.core.discovery import (
    DeclaredMembers,
    MemberDiscovery,
    ReflectionDiscovery,
    list_data_properties,
)
from understudy.core.recorder import (
    Call,
    CalledAssertions,
    CallRecorder,
    Expectations,
    Invocation,
)

__all__ = [
    "BehaviorOverride",
    "RuleScope",
    "MemberDiscovery",
    "ReflectionDiscovery",
    "DeclaredMembers",
    "list_data_properties",
    "Call",
    "CallRecorder",
    "CalledAssertions",
    "Expectations",
    "Invocation",
]
