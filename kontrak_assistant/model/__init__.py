"""Model collaborators."""

from .base import ModelCollaborator, ModelReply
from .gemini import GeminiModel

__all__ = ["ModelCollaborator", "ModelReply", "GeminiModel"]
