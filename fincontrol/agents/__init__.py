"""Agents package: provides the base class and the LLM agent for document extraction."""

from .base import BaseAgent  # noqa: F401
from .extraction_agent import ExtractionAgent  # noqa: F401
