"""
Base tool interface.

Every tool the model can call is a BaseTool: a name, a description,
a JSON parameter schema and an async invoke(args) -> result.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseTool(ABC):
    """Abstract base for all assistant tools."""

    name: str
    description: str
    parameters: Dict[str, Any]

    @abstractmethod
    async def invoke(self, args: Dict[str, Any]) -> Any:
        """
        Execute the tool.

        Raise on failure; the registry turns exceptions into error
        observations for the model.
        """
        ...

    def schema(self) -> Dict[str, Any]:
        """Build the function spec sent to the model service."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
