"""Shared fixtures: sample documentation exports and a fake fetcher."""

from unittest.mock import Mock

import pytest

from appsintoss_docs.fetcher import Fetcher, FetchResult

OUTLINE = """\
# Apps in Toss

> Build mini apps that run inside Toss.

## Getting Started

- [Introduction](https://developers-apps-in-toss.toss.im/intro/overview.md): What mini apps are
- [Setup](https://developers-apps-in-toss.toss.im/intro/setup.md)

### Payments

- [Toss Pay](https://developers-apps-in-toss.toss.im/payments/toss-pay.md): Accepting payments

## Reference

- [SDK](https://developers-apps-in-toss.toss.im/reference/sdk.md): Bridge API reference
"""

FLAT_EXPORT = """\
---
url: >-
  https://developers-apps-in-toss.toss.im/intro/overview.md
---
# Introduction

Mini apps are web apps that run inside the Toss app.

---
url: https://developers-apps-in-toss.toss.im/payments/toss-pay.md
---
# Toss Pay

Use the payment widget to charge a customer.
"""

FLAT_EXPORT_V2 = """\
---
url: https://developers-apps-in-toss.toss.im/reference/sdk.md
---
# SDK

The bridge exposes native features to the mini app.
"""


@pytest.fixture
def fetcher() -> Mock:
    """Create a fetcher double serving the sample exports.

    Returns:
        Mock with the Fetcher interface; ``fetch`` returns the flat export with
        ETag ``"v1"`` and ``fetch_text`` returns the outline.
    """
    fake = Mock(spec=Fetcher)
    fake.fetch.return_value = FetchResult(content=FLAT_EXPORT, etag='"v1"')
    fake.fetch_text.return_value = OUTLINE
    return fake


@pytest.fixture
def outline_text() -> str:
    """Return the sample outline document."""
    return OUTLINE


@pytest.fixture
def flat_export() -> str:
    """Return the sample frontmatter export (two documents)."""
    return FLAT_EXPORT


@pytest.fixture
def flat_export_v2() -> str:
    """Return a later revision of the export with a different document set."""
    return FLAT_EXPORT_V2
