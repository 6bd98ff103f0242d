# AGPL-3.0 License

from abc import ABC, abstractmethod
from typing import Optional


class BaseAiHandler(ABC):
    """
    This class defines the interface for an AI handler to be used by the AI reviewer.
    """

    @abstractmethod
    def __init__(self):
        pass

    @abstractmethod
    async def chat_completion(
        self,
        model: str,
        system: str,
        user: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
    ) -> tuple[str, Optional[str], str]:
        """
        This method should be implemented to return a chat completion from the AI model.

        Args:
            model (str): the name of the model to use for the chat completion
            system (str): the system message string to use for the chat completion
            user (str): the user message string to use for the chat completion
            temperature (float): the temperature to use for the chat completion
            max_tokens (int): upper bound on generated tokens
            timeout (float): transport timeout in seconds
            api_key (str): credential for the provider (default: handler-specific lookup)

        Returns:
            (response text, finish reason, model that answered)
        """
        pass
