#!/usr/bin/env python3
"""Inspect and maintain stored blog posts.

Usage:
    python scripts/manage_blogs.py list [page] [limit]
    python scripts/manage_blogs.py show <blog_id> [--html]
    python scripts/manage_blogs.py publish <blog_id>
    python scripts/manage_blogs.py unpublish <blog_id>
    python scripts/manage_blogs.py delete <blog_id>
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from blogsmith.blog_store import BlogNotFoundError, BlogStatus, BlogStore
from blogsmith.config import load_settings
from blogsmith.utils.logger import setup_logging


def _print_record(record, html=False):
    print(f"# {record.title}  [{record.status.value}]")
    print(f"id: {record.id}  created: {record.created_at}  updated: {record.updated_at}")
    print(f"{record.word_count} words, ~{record.estimated_read_time} min read")
    print(f"meta: {record.meta_description}")
    print(f"keywords: {', '.join(record.keywords)}")
    print(f"hashtags: {', '.join(record.hashtags)}")
    if record.hero_image:
        print(f"hero image: {record.hero_image[:80]}")
    print()
    print(record.content_html if html else record.content)


def main(argv: list[str]) -> int:
    if not argv or argv[0] not in ("list", "show", "publish", "unpublish", "delete"):
        print(__doc__)
        return 1

    setup_logging()
    settings = load_settings(str(Path(__file__).parent.parent / "config.yaml"))
    store = BlogStore(settings.blogs_path)
    command = argv[0]

    if command == "list":
        try:
            page = int(argv[1]) if len(argv) > 1 else 1
            limit = int(argv[2]) if len(argv) > 2 else 10
        except ValueError:
            print("Error: page and limit must be integers")
            return 1
        records, pagination = store.list_blogs(page=page, limit=limit)
        for r in records:
            print(f"{r.id}  {r.status.value:<9}  {r.created_at[:19]}  {r.title}")
        print(f"\npage {pagination['page']}/{pagination['pages']} ({pagination['total']} blogs)")
        return 0

    if len(argv) < 2:
        print(__doc__)
        return 1

    blog_id = argv[1]
    try:
        if command == "show":
            _print_record(store.get(blog_id), html="--html" in argv)
        elif command == "publish":
            store.update(blog_id, status=BlogStatus.PUBLISHED)
            print(f"Published {blog_id}")
        elif command == "unpublish":
            store.update(blog_id, status=BlogStatus.DRAFT)
            print(f"Moved {blog_id} back to draft")
        elif command == "delete":
            store.delete(blog_id)
            print(f"Deleted {blog_id}")
    except BlogNotFoundError:
        print(f"Blog not found: {blog_id}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
