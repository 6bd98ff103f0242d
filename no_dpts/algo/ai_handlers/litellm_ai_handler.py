# AGPL-3.0 License

import os
from typing import Optional

import litellm

from no_dpts.algo.ai_handlers.base_ai_handler import BaseAiHandler
from no_dpts.config_loader import get_settings
from no_dpts.log import get_logger


class LiteLLMAIHandler(BaseAiHandler):
    """
    Calls chat models through litellm.

    The credential is the ``api_key`` passed by the caller, or else the
    environment variable named by ``ai.api_key_env`` (``GROQ_API_KEY`` by
    default), read at call time.
    """

    def __init__(self, api_key_env: Optional[str] = None):
        self.api_key_env = api_key_env or get_settings().get("ai", {}).get("api_key_env", "GROQ_API_KEY")
        litellm.drop_params = True
        litellm.suppress_debug_info = True

    @staticmethod
    def qualify_model(model: str) -> str:
        """Prefix a bare model name with the configured provider (``groq/<model>``)."""
        if "/" in model:
            return model
        provider = get_settings().get("ai", {}).get("provider", "groq")
        return f"{provider}/{model}"

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
        model = self.qualify_model(model)
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "api_key": api_key or os.environ.get(self.api_key_env),
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if timeout:
            kwargs["timeout"] = timeout

        get_logger().debug(f"Sending review prompt to {model}")
        response = await litellm.acompletion(**kwargs)

        choice = response["choices"][0]
        resp = choice["message"]["content"] or ""
        finish_reason = choice["finish_reason"]
        get_logger().debug(f"AI response finished with reason {finish_reason}")
        return resp, finish_reason, getattr(response, "model", None) or model
