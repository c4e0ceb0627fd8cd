"""
SDK for AI Project Planner.

Provides the model client used for project generation.
"""

from .openai_client import ModelClient

__all__ = ["ModelClient"]
