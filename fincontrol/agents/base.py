"""Base agent abstraction for document extraction agents.

This module defines the abstract base class for agents that read a bank
statement or receipt and return the model's raw text answer.
"""

from abc import ABC, abstractmethod


class BaseAgent(ABC):
    """Abstract base class for all extraction agents."""

    @abstractmethod
    def extract(self, content_b64: str, mime_type: str, kind: str) -> str:
        """Send a base64 document to the model and return its raw text response.

        Raises ``AIGatewayError`` on transport-level failures.
        """
