"""SEO Analyzer — asks for keyword/title/slug/hashtag recommendations and parses them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from slugify import slugify

from blogsmith.parsers import ParseResult, parse_seo_analysis
from blogsmith.stages import FailurePolicy, PipelineStage

log = logging.getLogger(__name__)

SEO_OPTIMIZER_TEMPLATE = """You are an SEO Optimization Specialist. Your task is to analyze the generated blog content and provide comprehensive SEO recommendations.

For the given blog content, provide:

1. **Primary Keyword**: The main keyword for this blog
2. **Secondary Keywords**: 3-5 related keywords
3. **SEO Title**: Optimized title (50-60 characters)
4. **Meta Description**: Compelling description (150-160 characters)
5. **URL Slug**: SEO-friendly URL slug
6. **Social Media Hashtags**: 5-8 relevant hashtags for Twitter/LinkedIn/Instagram
7. **Internal Linking Suggestions**: 2-3 related topics for internal links
8. **Content Gaps**: Any missing information that should be added

Blog Title: {title}
Blog Content Preview: {content_preview}

Provide your analysis:"""

PREVIEW_CHARS = 500

# Per-field defaults when the reply parsed but a section was unusable
DEFAULT_PRIMARY_KEYWORD = "blog-content"
DEFAULT_SECONDARY_KEYWORDS = ("blog", "content")
DEFAULT_SEO_TITLE = "Generated Blog Post"
DEFAULT_META_DESCRIPTION = "Learn about this interesting topic through our comprehensive blog post."
DEFAULT_URL_SLUG = "generated-blog-post"
DEFAULT_HASHTAGS = ("blog", "content")

# Generic set used when the provider call itself failed
OFFLINE_SECONDARY_KEYWORDS = ("content", "blog", "article")


@dataclass(frozen=True)
class SEOAnalysis:
    primary_keyword: str
    secondary_keywords: list[str]
    seo_title: str
    meta_description: str
    url_slug: str
    hashtags: list[str]
    internal_link_suggestions: list[str] = field(default_factory=list)
    content_gaps: list[str] = field(default_factory=list)


def content_preview(content: str) -> str:
    return content[:PREVIEW_CHARS] + "..."


def build_seo_analysis(result: ParseResult) -> SEOAnalysis:
    """Fill every unparsed field with its fixed default."""
    f = result.fields
    if result.missing:
        log.warning(f"SEO parse degraded, falling back for: {', '.join(result.missing)}")

    return SEOAnalysis(
        primary_keyword=f["primary_keyword"] or DEFAULT_PRIMARY_KEYWORD,
        secondary_keywords=list(f["secondary_keywords"]) or list(DEFAULT_SECONDARY_KEYWORDS),
        seo_title=f["seo_title"] or DEFAULT_SEO_TITLE,
        meta_description=f["meta_description"] or DEFAULT_META_DESCRIPTION,
        url_slug=f["url_slug"] or DEFAULT_URL_SLUG,
        hashtags=list(f["hashtags"]) or list(DEFAULT_HASHTAGS),
        internal_link_suggestions=list(f["internal_link_suggestions"]),
        content_gaps=list(f["content_gaps"]),
    )


def default_analysis(title: str, content: str) -> SEOAnalysis:
    """Deterministic analysis derived from the draft alone."""
    title = title.strip()
    primary = re.sub(r"\s+", "-", title.lower())
    hashtags = list(DEFAULT_HASHTAGS)
    if title:
        first_word = slugify(title.split()[0])
        if first_word and first_word not in hashtags:
            hashtags.append(first_word)

    return SEOAnalysis(
        primary_keyword=primary or DEFAULT_PRIMARY_KEYWORD,
        secondary_keywords=list(OFFLINE_SECONDARY_KEYWORDS),
        seo_title=title[:60] or DEFAULT_SEO_TITLE,
        meta_description=content[:160].strip() or DEFAULT_META_DESCRIPTION,
        url_slug=slugify(title) or DEFAULT_URL_SLUG,
        hashtags=hashtags,
        internal_link_suggestions=[],
        content_gaps=[],
    )


class SEOAnalyzer(PipelineStage):
    """Never fails the pipeline: any client failure yields ``default_analysis``."""

    name = "analyzing"
    system_instruction = "You are an SEO expert who provides detailed optimization recommendations for blog content."
    on_failure = FailurePolicy.ABSORB

    def build_prompt(self, title: str, content: str) -> str:
        return (
            SEO_OPTIMIZER_TEMPLATE
            .replace("{title}", title)
            .replace("{content_preview}", content_preview(content))
        )

    def optimize_content(self, title: str, content: str) -> SEOAnalysis:
        raw = self.call_model(self.build_prompt(title, content))
        if raw is None:
            return default_analysis(title, content)

        analysis = build_seo_analysis(parse_seo_analysis(raw))
        log.info(
            f"SEO analysis: primary='{analysis.primary_keyword}', {len(analysis.hashtags)} hashtags",
            extra={"stage": self.name},
        )
        return analysis
