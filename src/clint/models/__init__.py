"""Pydantic data models for clint command trees."""

from clint.models.command import (
    ROOT_HEADER,
    Children,
    CommandNode,
    Flag,
    NodeStatus,
    OtherLine,
    ProcessOutput,
    Usage,
)
from clint.models.usage import ComponentType, UsageComponent

__all__ = [
    "ROOT_HEADER",
    "Children",
    "CommandNode",
    "ComponentType",
    "Flag",
    "NodeStatus",
    "OtherLine",
    "ProcessOutput",
    "Usage",
    "UsageComponent",
]
