# AGPL-3.0 License

"""
AI review of the staged diff.

The model's answer is free text, so it is treated as untrusted input:
only a response whose first non-blank line is ``RESULT: PASS`` or
``RESULT: REJECT`` yields a verdict. Anything else is reported as
unavailable, never as an approval.
"""

import asyncio
import os
import re
from functools import partial
from typing import Callable, Mapping, Optional

import litellm
from jinja2 import Template

from no_dpts.algo.ai_handlers.base_ai_handler import BaseAiHandler
from no_dpts.algo.ai_handlers.litellm_ai_handler import LiteLLMAIHandler
from no_dpts.algo.rate_limiter import TokenBucket, get_rate_limiter
from no_dpts.checks.base_check import BaseCheck
from no_dpts.checks.check_context import CheckContext
from no_dpts.checks.check_result import AiVerdict
from no_dpts.config_loader import get_settings
from no_dpts.log import get_logger
from no_dpts.repo_config import CheckConfig


UNAVAILABLE_MISSING_CREDENTIAL = "missing API credential"
UNAVAILABLE_RATE_LIMITED = "rate limited"
UNAVAILABLE_TIMEOUT = "timeout"
UNAVAILABLE_UNPARSEABLE = "unparseable response"
UNAVAILABLE_EMPTY_DIFF = "no changes to review"

_VERDICT_LINE = re.compile(r"^(?:\*\*)?RESULT:\s*(PASS|REJECT)(?:\*\*)?$")


def parse_verdict(response: str) -> AiVerdict:
    """
    Classify a model response.

    Grammar: optional blank lines, then a marker line
    ``RESULT: PASS`` / ``RESULT: REJECT`` (optionally bold), then free-form
    rationale. The marker is case-sensitive.
    """
    lines = response.strip().splitlines()
    if not lines:
        return AiVerdict.unavailable(UNAVAILABLE_UNPARSEABLE)

    match = _VERDICT_LINE.match(lines[0].strip())
    if match is None:
        return AiVerdict.unavailable(UNAVAILABLE_UNPARSEABLE)

    rationale = "\n".join(lines[1:]).strip()
    if match.group(1) == "PASS":
        return AiVerdict.approved(rationale)
    return AiVerdict.rejected(rationale or "No rationale provided")


class AiReviewer(BaseCheck):
    """
    Sends the whole staged diff to a language model, once per run.

    Every way the review can fail to happen (no credential, rate limit,
    timeout, transport error, unreadable answer) ends in an
    ``unavailable`` verdict instead of an exception.
    """

    name = "ai"

    def __init__(
        self,
        ai_handler: partial[BaseAiHandler] = LiteLLMAIHandler,
        rate_limiter_factory: Callable[[int], TokenBucket] = get_rate_limiter,
        environ: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            ai_handler: factory for the AI handler used for the remote call
            rate_limiter_factory: returns the token bucket for a requests-per-minute rate
            environ: where to look up the API credential (default: os.environ)
            timeout: bound on the remote call in seconds
        """
        super().__init__()
        ai_settings = get_settings().get("ai", {})
        self.ai_handler = ai_handler()
        self.rate_limiter_factory = rate_limiter_factory
        self.environ = environ if environ is not None else os.environ
        self.api_key_env = ai_settings.get("api_key_env", "GROQ_API_KEY")
        self.timeout = float(timeout if timeout is not None else ai_settings.get("timeout_seconds", 60))
        self.temperature = float(ai_settings.get("temperature", 0.3))
        self.max_tokens = int(ai_settings.get("max_tokens", 1024))
        self.max_diff_chars = int(ai_settings.get("max_diff_chars", 15000))
        self.logger = get_logger()

    async def run(self, context: CheckContext) -> AiVerdict:
        return await self.review(context.diff, context.config)

    async def review(self, diff: str, config: CheckConfig) -> AiVerdict:
        """
        Review the staged diff.

        Args:
            diff: Output of ``git diff --cached``
            config: Repository configuration (model, rate limit)

        Returns:
            Exactly one AiVerdict
        """
        api_key = self.environ.get(self.api_key_env)
        if not api_key:
            self.logger.warning(f"AI review skipped: {self.api_key_env} is not set")
            return AiVerdict.unavailable(UNAVAILABLE_MISSING_CREDENTIAL)

        if not diff.strip():
            return AiVerdict.unavailable(UNAVAILABLE_EMPTY_DIFF)

        bucket = self.rate_limiter_factory(config.rate_limit.requests_per_minute)
        if not await bucket.acquire(config.rate_limit.max_wait_seconds):
            self.logger.warning(
                f"AI review skipped: no rate-limit permit within {config.rate_limit.max_wait_seconds:g}s"
            )
            return AiVerdict.unavailable(UNAVAILABLE_RATE_LIMITED)

        system_prompt, user_prompt = self._build_prompts(diff)

        try:
            response, _, _ = await asyncio.wait_for(
                self.ai_handler.chat_completion(
                    model=config.ai_model,
                    system=system_prompt,
                    user=user_prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                    api_key=api_key,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, litellm.Timeout):
            self.logger.warning(f"AI review timed out after {self.timeout:g}s")
            return AiVerdict.unavailable(UNAVAILABLE_TIMEOUT)
        except Exception as e:
            self.logger.warning(f"AI review failed: {e}")
            return AiVerdict.unavailable(f"service unreachable: {e}")

        verdict = parse_verdict(response)
        if verdict.is_unavailable:
            self.logger.warning("AI response did not start with a RESULT marker")
        else:
            self.logger.info(f"AI review verdict: {verdict.outcome}")
        return verdict

    def _build_prompts(self, diff: str) -> tuple[str, str]:
        truncated_chars = max(0, len(diff) - self.max_diff_chars)
        if truncated_chars:
            diff = diff[:self.max_diff_chars]

        prompts = get_settings().review_prompts
        user = Template(prompts.user).render(diff=diff, truncated_chars=truncated_chars)
        return prompts.system, user
