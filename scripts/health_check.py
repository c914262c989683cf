#!/usr/bin/env python3
"""System health check — credentials, blog store, last generation run and disk."""

import os
import shutil
import sys
from datetime import datetime, timezone, timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from blogsmith.blog_store import BlogStore
from blogsmith.config import ConfigError, load_settings


def check_credentials(settings) -> tuple[bool, str]:
    """Verify the completion provider key is present."""
    try:
        settings.require_llm_key()
    except ConfigError as e:
        return False, str(e)
    if not settings.images.api_key:
        return True, f"OK ({settings.llm.provider}); image generation disabled, OPENROUTER_API_KEY not set"
    return True, f"OK ({settings.llm.provider})"


def check_blog_store(settings) -> tuple[bool, str]:
    """Verify the blog store file loads."""
    try:
        store = BlogStore(settings.blogs_path)
    except Exception as e:
        return False, f"Cannot read {settings.blogs_path}: {e}"
    return True, f"{store.count()} blogs in {settings.blogs_path}"


def check_last_run() -> tuple[bool, str]:
    """Report the outcome of the most recent generate_blog run."""
    last_run_file = PROJECT_ROOT / "logs" / "last_run.txt"
    if not last_run_file.exists():
        return True, "No generation run recorded yet"

    lines = last_run_file.read_text().strip().split("\n")
    if len(lines) < 2:
        return False, "last_run.txt is malformed"

    status = lines[0].strip()
    message = lines[2].strip() if len(lines) > 2 else ""
    try:
        age = datetime.now(timezone.utc) - datetime.fromisoformat(lines[1].strip())
    except ValueError:
        return False, f"Cannot parse last_run timestamp: {lines[1].strip()}"

    if status == "FAILURE":
        return False, f"Last run FAILED {age.total_seconds()/3600:.1f}h ago: {message}"
    if age > timedelta(days=7):
        return True, f"OK — but last run was {age.days} days ago"
    return True, f"OK — last run {age.total_seconds()/3600:.1f}h ago"


def check_disk_space() -> tuple[bool, str]:
    """Warn if disk > 80% full."""
    total, used, free = shutil.disk_usage(os.getcwd())
    pct_used = used / total * 100
    if pct_used > 80:
        return False, f"Disk {pct_used:.1f}% full ({free // (1024**3)}GB free)"
    return True, f"Disk {pct_used:.1f}% used"


def main():
    print(f"Health check: {datetime.now(timezone.utc).isoformat()}")
    settings = load_settings(str(PROJECT_ROOT / "config.yaml"))
    failures = []

    checks = [
        ("Credentials", lambda: check_credentials(settings)),
        ("Blog Store", lambda: check_blog_store(settings)),
        ("Last Run", check_last_run),
        ("Disk Space", check_disk_space),
    ]

    for name, check_fn in checks:
        ok, msg = check_fn()
        status = "OK" if ok else "FAIL"
        print(f"  [{status}] {name}: {msg}")
        if not ok:
            failures.append(f"{name}: {msg}")

    if failures:
        print("Health check failures:\n  " + "\n  ".join(failures))
        return 1

    print("All checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
