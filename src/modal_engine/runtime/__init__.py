"""Ambient services: telemetry and host options."""

from . import telemetry
from .options import EngineOptions

__all__ = ["telemetry", "EngineOptions"]
