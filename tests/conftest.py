"""Shared fixtures: a scripted completion client and canned model replies."""

import pytest

from blogsmith.completion_client import CompletionClient


class FakeCompletionClient(CompletionClient):
    """Returns scripted replies in order. Exception instances are raised instead."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def invoke(self, model, messages):
        self.calls.append({"model": model, "messages": messages})
        if not self.replies:
            raise AssertionError("FakeCompletionClient ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return {"content": reply}


@pytest.fixture
def make_client():
    return FakeCompletionClient


DRAFT_REPLY = """# Home Composting for Beginners

Turn kitchen scraps into rich garden soil with a simple bin and a little patience.

## Introduction
Composting is easier than most people think.

## Choosing a Bin
Pick a bin with a lid and good airflow.

## Balancing Greens and Browns
Mix food scraps with dry leaves.

## Conclusion
Start your bin this weekend.

---

Summary: A short beginner guide to setting up a home compost bin and keeping it healthy.
Word count: 950
SEO Keywords: composting, home compost, garden soil
Hashtags: #composting, #gardening, #zerowaste
"""

SEO_REPLY = """Here is my SEO analysis of the post.

1. **Primary Keyword**: home composting
2. **Secondary Keywords**: compost bin, kitchen scraps, garden soil, brown materials, green materials, worm composting
3. **SEO Title**: "Home Composting for Beginners: A Simple Guide"
4. **Meta Description**: Learn how to start home composting with a simple bin, the right mix of greens and browns, and a few minutes a week.
5. **URL Slug**: home-composting-for-beginners
6. **Social Media Hashtags**:
#composting #gardening #zerowaste #sustainability #compost #organic #soilhealth #greenliving #ecofriendly
7. **Internal Linking Suggestions**:
- Vermicomposting basics
- Raised bed gardening
- Reducing food waste at home
- Rainwater harvesting
8. **Content Gaps**:
- Troubleshooting a smelly compost pile
- Composting through the winter
"""


@pytest.fixture
def draft_reply():
    return DRAFT_REPLY


@pytest.fixture
def seo_reply():
    return SEO_REPLY
