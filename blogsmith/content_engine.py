"""Content Engine — sequences enhance -> draft -> analyze and merges the results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from blogsmith.blog_store import BlogRecord, BlogStatus
from blogsmith.completion_client import CompletionClient, build_completion_client
from blogsmith.config import Settings
from blogsmith.content_drafter import ContentDrafter, DraftedContent
from blogsmith.prompt_enhancer import PromptEnhancer
from blogsmith.seo_analyzer import SEOAnalysis, SEOAnalyzer
from blogsmith.stages import GenerationError

log = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    ENHANCING = "enhancing"
    DRAFTING = "drafting"
    ANALYZING = "analyzing"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MergedBlog:
    """Draft fields with the SEO-facing ones overridden by the analysis."""

    title: str
    content: str
    meta_description: str
    keywords: list[str]
    hashtags: list[str]
    word_count: int
    summary: str
    primary_keyword: str
    secondary_keywords: list[str]
    seo_title: str
    url_slug: str
    internal_link_suggestions: list[str] = field(default_factory=list)
    content_gaps: list[str] = field(default_factory=list)


@dataclass
class CompleteBlogResult:
    blog: MergedBlog
    enhanced_prompt: str
    states: list[PipelineState] = field(default_factory=list)


def merge_results(draft: DraftedContent, seo: SEOAnalysis) -> MergedBlog:
    """Analyzer output wins for title, meta, keywords and hashtags when non-empty.

    Body and word count always come from the draft.
    """
    return MergedBlog(
        title=seo.seo_title or draft.title,
        content=draft.body,
        meta_description=seo.meta_description or draft.meta_description,
        keywords=list(seo.secondary_keywords or draft.keywords),
        hashtags=list(seo.hashtags or draft.hashtags),
        word_count=draft.word_count,
        summary=draft.summary,
        primary_keyword=seo.primary_keyword,
        secondary_keywords=list(seo.secondary_keywords),
        seo_title=seo.seo_title,
        url_slug=seo.url_slug,
        internal_link_suggestions=list(seo.internal_link_suggestions),
        content_gaps=list(seo.content_gaps),
    )


def build_record(result: CompleteBlogResult, prompt: str,
                 status: BlogStatus = BlogStatus.PUBLISHED) -> BlogRecord:
    """Turn a finished pipeline run into an unsaved BlogRecord."""
    blog = result.blog
    return BlogRecord(
        title=blog.title,
        content=blog.content,
        meta_description=blog.meta_description,
        keywords=list(blog.keywords),
        hashtags=list(blog.hashtags),
        prompt=prompt.strip(),
        status=status,
        summary=blog.summary or blog.content[:150] + "...",
    )


class ContentEngine:
    """Runs one blog generation per call. Holds only its stages, no run state.

    Transitions are strictly sequential::

        IDLE -> ENHANCING -> DRAFTING -> ANALYZING -> MERGING -> DONE

    Enhancing and analyzing absorb any client failure, so in practice FAILED
    is only entered from DRAFTING or MERGING. There are no retries here.
    """

    def __init__(self, enhancer: PromptEnhancer, drafter: ContentDrafter, analyzer: SEOAnalyzer):
        self.enhancer = enhancer
        self.drafter = drafter
        self.analyzer = analyzer

    @classmethod
    def from_settings(cls, settings: Settings, client: CompletionClient | None = None) -> "ContentEngine":
        """Wire the three stages onto one shared, read-only client."""
        client = client or build_completion_client(settings)
        return cls(
            enhancer=PromptEnhancer(client, settings.llm.fast_model),
            drafter=ContentDrafter(client, settings.llm.quality_model),
            analyzer=SEOAnalyzer(client, settings.llm.fast_model),
        )

    def generate_complete_blog(self, user_prompt: str) -> CompleteBlogResult:
        states = [PipelineState.IDLE]
        state = PipelineState.IDLE

        def advance(next_state: PipelineState):
            nonlocal state
            state = next_state
            states.append(next_state)
            log.info(f"Pipeline -> {next_state.value}", extra={"stage": next_state.value})

        log.info(f"Starting blog generation for prompt: {user_prompt[:50]!r}")
        try:
            advance(PipelineState.ENHANCING)
            enhanced_prompt = self.enhancer.enhance_prompt(user_prompt)

            advance(PipelineState.DRAFTING)
            draft = self.drafter.generate_blog(enhanced_prompt)

            advance(PipelineState.ANALYZING)
            seo = self.analyzer.optimize_content(draft.title, draft.body)

            advance(PipelineState.MERGING)
            blog = merge_results(draft, seo)
        except Exception as e:
            failed_in = state
            states.append(PipelineState.FAILED)
            log.error(f"Blog generation failed during {failed_in.value}: {e}", extra={"stage": failed_in.value})
            raise GenerationError(
                f"Blog generation failed during {failed_in.value}: {e}", stage=failed_in.value
            ) from e

        advance(PipelineState.DONE)
        log.info(f"Blog generation completed: {blog.title} ({blog.word_count} words)")
        return CompleteBlogResult(blog=blog, enhanced_prompt=enhanced_prompt, states=states)
