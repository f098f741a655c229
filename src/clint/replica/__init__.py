"""Replica generation from parsed command trees."""

from clint.replica.generator import ReplicaGenerator, python_type, to_identifier

__all__ = ["ReplicaGenerator", "python_type", "to_identifier"]
