"""Usage grammar component models."""

from enum import Enum

from pydantic import BaseModel, Field


class ComponentType(str, Enum):
    """Kinds of usage-string components."""
    FLAG = "Flag"
    ARGUMENT = "Argument"
    KEYWORD = "Keyword"
    GROUP = "Group"
    ALTERNATIVE_GROUP = "AlternativeGroup"
    KEY_VALUE_PAIR = "KeyValuePair"


class UsageComponent(BaseModel):
    """One node of a parsed usage string.

    Groups and key/value pairs own ``children``; alternative groups own
    ``alternatives`` (two or more). A flag that takes a value in place
    (``--out=<file>``) carries the value as a single Argument child.
    """

    component_type: ComponentType = Field(description="Component kind")
    name: str = Field(default="", description="Token text without decoration")
    required: bool = Field(default=True, description="Whether the component must appear")
    repeatable: bool = Field(default=False, description="Followed by an ellipsis")
    key_value: bool = Field(default=False, description="Takes an attached value")
    alternatives: list["UsageComponent"] = Field(default_factory=list, description="Mutually exclusive choices")
    children: list["UsageComponent"] = Field(default_factory=list, description="Nested sequence")


UsageComponent.model_rebuild()
