import pytest

from mq_kit.document.models import Document
from mq_kit.engine import Engine

GUIDE_MD = """\
---
title: Guide
owner: alice
tags: [api, auth]
priority: high
---
# Guide

Intro paragraph with **bold** text.

## Install

Run the installer. See [docs](https://example.com/docs).

```bash
pip install mq-kit
```

## Usage

```python
print("hi")
```

```python
print("bye")
```

### Advanced

![diagram](diagram.png "Flow")

# Reference

| Name | Value |
| ---- | ----- |
| a    | 1     |

- [x] done
- [ ] todo
"""


@pytest.fixture
def engine() -> Engine:
    return Engine()


@pytest.fixture
def guide(engine: Engine) -> Document:
    """Markdown document with frontmatter, nested sections and every element kind."""
    return engine.parse_document(GUIDE_MD, "guide.md")
