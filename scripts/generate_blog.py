#!/usr/bin/env python3
"""Generate a complete blog post from a short prompt and save it.

Runs enhance -> draft -> SEO analysis, stores the merged result in the blog
store as published, and prints a short report.

Usage:
    python scripts/generate_blog.py "<prompt>" [--hero-image [style]]

Example:
    python scripts/generate_blog.py "Write a blog about home composting for beginners" --hero-image realistic
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from blogsmith.blog_store import BlogStore
from blogsmith.config import ConfigError, load_settings
from blogsmith.content_engine import ContentEngine, build_record
from blogsmith.image_pipeline import ImageGenerator
from blogsmith.stages import GenerationError
from blogsmith.utils.logger import setup_logging

MIN_PROMPT_LENGTH = 10


def write_last_run(project_root: Path, success: bool, message: str = ""):
    """Write a last_run.txt for health check monitoring."""
    last_run_path = project_root / "logs" / "last_run.txt"
    last_run_path.parent.mkdir(parents=True, exist_ok=True)
    status = "SUCCESS" if success else "FAILURE"
    timestamp = datetime.now(timezone.utc).isoformat()
    last_run_path.write_text(f"{status}\n{timestamp}\n{message}\n")


def main(argv: list[str]) -> int:
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        return 1

    prompt = argv[0].strip()
    if len(prompt) < MIN_PROMPT_LENGTH:
        print(f"Error: please provide a prompt with at least {MIN_PROMPT_LENGTH} characters")
        return 1

    hero_style = None
    want_hero = "--hero-image" in argv
    if want_hero:
        idx = argv.index("--hero-image")
        if idx + 1 < len(argv):
            hero_style = argv[idx + 1]

    setup_logging()
    settings = load_settings(str(PROJECT_ROOT / "config.yaml"))

    try:
        engine = ContentEngine.from_settings(settings)
        result = engine.generate_complete_blog(prompt)
    except (ConfigError, GenerationError) as e:
        print(f"FAILED: {e}", file=sys.stderr)
        write_last_run(PROJECT_ROOT, success=False, message=str(e))
        return 1

    store = BlogStore(settings.blogs_path)
    record = store.create(build_record(result, prompt))

    if want_hero:
        image = ImageGenerator(settings).generate_image(result.blog.title, style=hero_style)
        if image.success:
            record = store.attach_images(record.id, hero_image=image.images[0].url)
        else:
            print(f"Hero image skipped: {image.error}")

    print(f"Blog saved: {record.title}")
    print(f"   ID: {record.id}")
    print(f"   {record.word_count} words, ~{record.estimated_read_time} min read")
    print(f"   Keywords: {', '.join(record.keywords)}")
    print(f"   Hashtags: {' '.join('#' + h for h in record.hashtags)}")
    if result.blog.internal_link_suggestions:
        print(f"   Link ideas: {'; '.join(result.blog.internal_link_suggestions)}")
    write_last_run(PROJECT_ROOT, success=True, message=f"Blog {record.id}: {record.title}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
