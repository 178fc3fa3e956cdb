"""Test configuration and fixtures for Pressed tests."""

import json
import logging
import os
import shutil
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pressed_pkg.models import Author, Category, MediaItem, Page, SiteData

DOMAIN = 'example.com'
SOURCE = 'example.com'

METADATA = {
    'categories': [
        {'id': 1, 'name': 'Uncategorized', 'slug': 'uncategorized', 'count': 2},
        {'id': 5, 'name': 'News', 'slug': 'news', 'count': '1', 'description': 'Latest news'},
        {'id': 7, 'name': 'Empty', 'slug': 'empty', 'count': 0},
    ],
    'media': [
        {
            'id': 42,
            'slug': 'photo',
            'title': {'rendered': 'Photo'},
            'media_type': 'image',
            'mime_type': 'image/jpeg',
            'source_url': 'https://old.example.com/wp-content/uploads/2024/01/photo.jpg',
            'media_details': {'width': '800', 'height': 600, 'file': '2024/01/photo.jpg'},
        },
    ],
    'users': [
        {'id': 1, 'name': 'Jane Writer', 'slug': 'jane'},
    ],
}

ABOUT_PAGE = """---
id: 2
title: About
slug: about
date: 2023-05-01T09:00:00
modified: 2023-06-01T09:00:00
status: publish
type: page
link: https://example.com/about/
author: 1
---

# About

## Excerpt
Who we are.

## Content
We write about **things**.
"""

HOME_PAGE = """---
id: 3
title: Home
slug: home
date: 2023-05-01
status: publish
type: page
link: https://example.com/
---

## Content
HOME PAGE BODY
"""

DRAFT_PAGE = """---
id: 4
title: Draft
slug: draft
status: draft
type: page
---

## Content
Not ready.
"""

BROKEN_PAGE = """---
title: [unclosed
slug: broken
---

## Content
Broken.
"""

HELLO_POST = """---
id: 10
title: Hello World
slug: hello-world
date: 2024-01-15T10:00:00
modified: 2024-01-20T08:00:00
status: publish
type: post
link: https://example.com/hello-world/
author: 1
categories: [1, 5]
---

# Hello World

## Excerpt
A first post.

## Content
Intro paragraph.

{{promo}}

- About

<img class="wp-image-42" src="https://old.example.com/wp-content/uploads/2024/01/photo-300x200.jpg">
"""

UNCATEGORIZED_POST = """---
id: 11
title: Older Post
slug: older-post
date: 2023-06-01
status: publish
type: post
author: 1
categories: [1]
---

## Content
Only in the uncategorized category.
"""

PROMO_SHORTCODE = {
    'name': 'promo',
    'type': 'banner',
    'title': 'Deals & More',
    'text': 'Save <big>',
    'url': 'https://shop.example.com/?a=1&b=2',
    'legal': 'T&C apply',
}

TEST_TEMPLATES = {
    'index.html': '<ul>{% for post in posts %}<li><a href="{{ post.url }}">{{ post.title }}</a></li>{% endfor %}</ul>',
    'page.html': '<h1>{{ page.title }}</h1>\n<div>{{ page.content|safe_html }}</div>',
    'post.html': ('<h1>{{ post.title }}</h1>\n'
                  '<link rel="canonical" href="{{ get_canonical(post, domain) }}">\n'
                  '<div>{{ post.content|safe_html }}</div>'),
    'category.html': '<h1>{{ category.name }}</h1>{% for post in posts %}<p>{{ post.slug }}</p>{% endfor %}',
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def content_root(temp_dir):
    """Create a content root holding one exported source."""
    content_dir = Path(temp_dir) / 'content'
    source_dir = content_dir / SOURCE
    pages_dir = source_dir / 'pages'
    news_dir = source_dir / 'posts' / 'news'
    uncategorized_dir = source_dir / 'posts' / 'uncategorized'
    media_dir = source_dir / 'media'

    for directory in (pages_dir, news_dir, uncategorized_dir, media_dir):
        directory.mkdir(parents=True)

    (source_dir / 'metadata.json').write_text(json.dumps(METADATA), encoding='utf-8')
    (pages_dir / 'about.md').write_text(ABOUT_PAGE, encoding='utf-8')
    (pages_dir / 'home.md').write_text(HOME_PAGE, encoding='utf-8')
    (pages_dir / 'draft.md').write_text(DRAFT_PAGE, encoding='utf-8')
    (pages_dir / 'broken.md').write_text(BROKEN_PAGE, encoding='utf-8')
    (news_dir / 'hello-world.md').write_text(HELLO_POST, encoding='utf-8')
    (uncategorized_dir / 'older-post.md').write_text(UNCATEGORIZED_POST, encoding='utf-8')
    (media_dir / '42_photo.jpg').write_bytes(b'not really a jpeg')

    return str(content_dir)


@pytest.fixture
def templates_dir(temp_dir):
    """Create a templates root with a minimal 'test' theme."""
    root = Path(temp_dir) / 'templates'
    theme = root / 'test'
    (theme / 'css').mkdir(parents=True)
    for name, source in TEST_TEMPLATES.items():
        (theme / name).write_text(source, encoding='utf-8')
    (theme / 'css' / 'style.css').write_text('body {\n  color: red;\n}\n', encoding='utf-8')
    return str(root)


@pytest.fixture
def output_dir(temp_dir):
    """Path for generated output (not created)."""
    return str(Path(temp_dir) / 'output')


@pytest.fixture
def sample_site():
    """A small SiteData built in memory."""
    about = Page(id=2, title='About', slug='about', status='publish', type='page',
                 link='https://example.com/about/', date=datetime(2023, 5, 1),
                 modified=datetime(2023, 6, 1), content='About body')
    post = Page(id=10, title='Hello World', slug='hello-world', status='publish', type='post',
                date=datetime(2024, 1, 15, 10, 0), modified=datetime(2024, 1, 20),
                author=1, categories=[1, 5], excerpt='A first post.', content='Hello body')
    older = Page(id=11, title='Older Post', slug='older-post', status='publish', type='post',
                 date=datetime(2023, 6, 1), categories=[1], content='Older body')
    return SiteData(
        domain=DOMAIN,
        pages=[about],
        posts=[post, older],
        categories={
            1: Category(id=1, name='Uncategorized', slug='uncategorized'),
            5: Category(id=5, name='News', slug='news'),
            7: Category(id=7, name='Empty', slug='empty'),
        },
        media={42: MediaItem(id=42, slug='photo', file='2024/01/photo.jpg')},
        authors={1: Author(id=1, name='Jane Writer', slug='jane')},
    )


@pytest.fixture(autouse=True)
def reset_pressed_logger():
    """Drop handlers a Pressed instance attached to the shared logger."""
    yield
    logger = logging.getLogger('Pressed')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
