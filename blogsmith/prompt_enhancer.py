"""Prompt Enhancer — turns a short topic into a detailed blog brief."""

import logging

from blogsmith.stages import FailurePolicy, PipelineStage

log = logging.getLogger(__name__)

PROMPT_ENHANCER_TEMPLATE = """You are a Prompt Enhancement Specialist. Your task is to take a user's basic blog request and transform it into a detailed, comprehensive prompt that will generate high-quality, SEO-optimized blog content.

For the given input, create an enhanced prompt that includes:
1. Specific topic and angle
2. Target audience details
3. Key points to cover
4. Desired tone and style
5. SEO considerations
6. Call-to-action suggestions
7. Length and structure requirements

Original user prompt: {user_prompt}

Enhanced prompt:"""


class PromptEnhancer(PipelineStage):
    """Best-effort stage: any failure hands the original prompt back unchanged."""

    name = "enhancing"
    system_instruction = "You are a professional prompt enhancer that creates detailed blog generation prompts."
    on_failure = FailurePolicy.ABSORB

    def build_prompt(self, user_prompt: str) -> str:
        return PROMPT_ENHANCER_TEMPLATE.replace("{user_prompt}", user_prompt)

    def enhance_prompt(self, user_prompt: str) -> str:
        text = self.call_model(self.build_prompt(user_prompt))
        if text is None:
            return user_prompt
        enhanced = text.strip()
        if not enhanced:
            log.warning("Prompt enhancer returned empty text, keeping original prompt")
            return user_prompt
        log.info(f"Prompt enhanced ({len(user_prompt)} -> {len(enhanced)} chars)", extra={"stage": self.name})
        return enhanced
