"""Event streaming for generation runs."""

from .channel import EventChannel

__all__ = ["EventChannel"]
