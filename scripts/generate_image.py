#!/usr/bin/env python3
"""Generate a single image from a prompt.

Usage:
    python scripts/generate_image.py "<prompt>" [style] [size] [--save]

Styles: realistic, illustration, minimal, futuristic
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from blogsmith.config import load_settings
from blogsmith.image_pipeline import ImageGenerator, save_image
from blogsmith.utils.logger import setup_logging


def main(argv: list[str]) -> int:
    save = "--save" in argv
    args = [a for a in argv if a != "--save"]
    if not args or args[0] in ("-h", "--help"):
        print(__doc__)
        return 1

    prompt = args[0]
    style = args[1] if len(args) > 1 else None
    size = args[2] if len(args) > 2 else None

    setup_logging()
    settings = load_settings(str(Path(__file__).parent.parent / "config.yaml"))
    result = ImageGenerator(settings).generate_image(prompt, style=style, size=size)
    print(json.dumps(result.to_dict(), indent=2))

    if not result.success:
        return 1

    if save:
        try:
            path = save_image(result.images[0].url, settings.images.output_dir, settings.images.timeout_seconds)
        except Exception as e:
            print(f"Could not save image: {e}", file=sys.stderr)
            return 1
        print(f"Saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
