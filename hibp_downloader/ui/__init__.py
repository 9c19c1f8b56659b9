"""User interaction helpers."""

from .progress import ProgressReporter
from .prompts import ResumeAction, ResumeDecision, ResumePrompt

__all__ = ["ProgressReporter", "ResumeAction", "ResumeDecision", "ResumePrompt"]
