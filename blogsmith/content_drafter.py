"""Content Drafter — writes the article and decomposes the reply into fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blogsmith.parsers import ParseResult, count_words, parse_draft
from blogsmith.stages import FailurePolicy, GenerationError, PipelineStage

log = logging.getLogger(__name__)

BLOG_WRITER_TEMPLATE = """You are a Professional Blog Writer and SEO Specialist. Your task is to create a comprehensive, engaging, and SEO-optimized blog post based on the enhanced prompt provided.

Requirements:
- Write a complete blog post (800-1200 words)
- Include H1, H2, H3 headings for structure
- Write in engaging, conversational tone
- Include practical examples and insights
- Add a compelling conclusion with clear call-to-action
- Ensure content is original and valuable
- Use transition words for smooth flow
- Include relevant statistics or data points where appropriate
- Create a brief summary (50-100 words) that captures the main points

Enhanced Prompt: {enhanced_prompt}

Please generate the blog content in the following format:

# [Blog Title]

[Meta Description - 150-160 characters]

## Introduction
[Introduction content]

## [Main Section Heading]
[Section content]

## [Another Section Heading]
[Section content]

## Conclusion
[Conclusion with CTA]

---

Summary: [Brief 50-100 word summary of the blog]
Word count: [approximate word count]
SEO Keywords: [comma-separated keywords]
Hashtags: [relevant hashtags for social media]"""

DEFAULT_TITLE = "Generated Blog Post"
DEFAULT_KEYWORDS = ("blog", "content", "article")
DEFAULT_HASHTAGS = ("blog", "content")


@dataclass(frozen=True)
class DraftedContent:
    title: str
    body: str
    meta_description: str
    summary: str
    keywords: list[str] = field(default_factory=list)
    hashtags: list[str] = field(default_factory=list)
    word_count: int = 0


def build_drafted_content(result: ParseResult) -> DraftedContent:
    """Fill every field the parser could not find with its fallback."""
    f = result.fields
    body = f["body"]
    if result.missing:
        log.warning(f"Draft parse degraded, falling back for: {', '.join(result.missing)}")

    return DraftedContent(
        title=f["title"] or DEFAULT_TITLE,
        body=body,
        meta_description=f["meta_description"] or body[:160],
        summary=f["summary"] or body[:150] + "...",
        keywords=list(f["keywords"]) or list(DEFAULT_KEYWORDS),
        hashtags=list(f["hashtags"]) or list(DEFAULT_HASHTAGS),
        # Never trust a count stated by the model
        word_count=count_words(body),
    )


class ContentDrafter(PipelineStage):
    """Drafting is required: a failed call raises GenerationError.

    A reply that arrives but parses poorly is never an error; missing fields
    get their fallbacks and the body may be empty.
    """

    name = "drafting"
    system_instruction = (
        "You are an expert blog writer who creates high-quality, SEO-optimized content. "
        "Always structure your response with clear headings and engaging content."
    )
    on_failure = FailurePolicy.PROPAGATE

    def build_prompt(self, enhanced_prompt: str) -> str:
        return BLOG_WRITER_TEMPLATE.replace("{enhanced_prompt}", enhanced_prompt)

    def generate_blog(self, enhanced_prompt: str) -> DraftedContent:
        raw = self.call_model(self.build_prompt(enhanced_prompt))
        if raw is None:
            # Only reachable when the policy was overridden to ABSORB
            raise GenerationError("Failed to generate blog content", stage=self.name)

        draft = build_drafted_content(parse_draft(raw))
        if not draft.body:
            log.warning("Draft reply has no body text after parsing", extra={"stage": self.name})
        log.info(f"Draft parsed: {draft.title} ({draft.word_count} words)", extra={"stage": self.name})
        return draft
