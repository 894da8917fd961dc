import logging

import litellm

from django_x402_prompts.exceptions import PromptGenerationError
from django_x402_prompts.settings import x402_prompts_settings

logger = logging.getLogger(__name__)


class PromptRefinementService:
    """Turns a goal and its details into a refined prompt with one LLM call."""

    def refine_prompt(self, goal: str, details: str) -> str:
        logger.info("Calling LLM: model=%s", x402_prompts_settings.LLM_MODEL)
        try:
            completion = litellm.completion(
                model=x402_prompts_settings.LLM_MODEL,
                messages=[
                    {"role": "system", "content": x402_prompts_settings.LLM_SYSTEM_PROMPT},
                    {"role": "user", "content": f"Goal: {goal}\nDetails: {details}"},
                ],
                temperature=x402_prompts_settings.LLM_TEMPERATURE,
                max_tokens=x402_prompts_settings.LLM_MAX_TOKENS,
            )
        except Exception as e:
            status = getattr(e, "status_code", None)
            if status == 401:
                logger.error(f"LLM key invalid or missing scopes: {e}")
            else:
                logger.error(f"LLM call failed: {e}")
            raise PromptGenerationError(str(e)) from e

        try:
            content = completion.choices[0].message.content
        except (IndexError, AttributeError, TypeError) as e:
            logger.error(f"LLM returned a malformed completion: {e}")
            raise PromptGenerationError("LLM returned a malformed completion") from e

        if not isinstance(content, str) or not content.strip():
            raise PromptGenerationError("LLM returned an empty completion")

        return content.strip()
