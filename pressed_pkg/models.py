"""
Content model for Pressed.

Pages, posts, categories, authors and media items as exported from a
blog/CMS, plus the rules that decide where every page lives on disk and
what its permanent address is.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

# Category reserved for "uncategorized" content.
UNCATEGORIZED_ID = 1

# Sentinel for dates that were missing or could not be parsed.
UNKNOWN_DATE = datetime.min

URL_FORMAT_DATE = 'date'
URL_FORMAT_SLUG = 'slug'


def flex_int(value: Any) -> int:
    """
    Coerce a JSON value that may be a number or a numeric string to int.

    Empty strings and None become 0. Anything else that is not numeric
    raises ValueError.
    """
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"cannot parse {value!r} as int")
    raise ValueError(f"cannot convert {value!r} to int")


def _link_path(link: str) -> Optional[str]:
    """Return the path component of link, or None if it does not parse."""
    try:
        return urlparse(link).path
    except ValueError:
        return None


def _normalize_path(path: str) -> str:
    if not path.startswith('/'):
        path = '/' + path
    if not path.endswith('/'):
        path = path + '/'
    return path


class Page:
    """A static page or a dated post."""

    def __init__(self, id=0, title='', slug='', date=UNKNOWN_DATE, modified=UNKNOWN_DATE,
                 status='', type='page', link='', author=0, categories=None,
                 excerpt='', content='', url_format=''):
        self.id = id
        self.title = title
        self.slug = slug
        self.date = date
        self.modified = modified
        self.status = status
        self.type = type
        self.link = link
        self.author = author
        self.categories = list(categories or [])
        self.excerpt = excerpt
        self.content = content
        # Injected by the generator before assembly.
        self.url_format = url_format

    def __repr__(self):
        return f"Page(id={self.id!r}, type={self.type!r}, slug={self.slug!r})"

    @property
    def is_post(self) -> bool:
        return self.type == 'post'

    @property
    def url(self) -> str:
        return resolve_url(self)

    @property
    def output_path(self) -> str:
        return resolve_output_path(self)

    def canonical(self, domain: str) -> str:
        return resolve_canonical(self, domain)

    def has_valid_categories(self) -> bool:
        """True if the post belongs to at least one real category."""
        return any(cat_id != UNCATEGORIZED_ID for cat_id in self.categories)


def resolve_url(page: Page) -> str:
    """
    Resolve the absolute URL path of a page or post.

    Posts use /YYYY/MM/DD/slug/ unless their url_format is "slug", in which
    case the path of their link (or /slug/) is used. Pages use the path of
    their link when it parses, else /slug/.
    """
    if page.is_post:
        if page.url_format == URL_FORMAT_SLUG:
            if page.link:
                path = _link_path(page.link)
                if path is not None:
                    return _normalize_path(path)
            return f"/{page.slug}/"
        date = page.date
        return f"/{date.year}/{date.month:02d}/{date.day:02d}/{page.slug}/"

    if page.link:
        path = _link_path(page.link)
        if path is not None:
            return _normalize_path(path)
    return f"/{page.slug}/"


def resolve_output_path(page: Page) -> str:
    """Filesystem path of the page's directory, relative to the output root."""
    return resolve_url(page).strip('/')


def resolve_canonical(page: Page, domain: str) -> str:
    return f"https://{domain}{resolve_url(page)}"


def is_root_path(output_path: str) -> bool:
    """True if an output path would land on the site root (the homepage)."""
    return output_path in ('', '.')


class Category:
    def __init__(self, id=0, name='', slug='', description='', count=0, parent=0, link=''):
        self.id = id
        self.name = name
        self.slug = slug
        self.description = description
        self.count = count
        self.parent = parent
        self.link = link

    def __repr__(self):
        return f"Category(id={self.id!r}, slug={self.slug!r})"

    @property
    def url(self) -> str:
        return f"/category/{self.slug}/"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=flex_int(data.get('id')),
            name=data.get('name') or '',
            slug=data.get('slug') or '',
            description=data.get('description') or '',
            count=flex_int(data.get('count')),
            parent=flex_int(data.get('parent')),
            link=data.get('link') or '',
        )


class Author:
    def __init__(self, id=0, name='', slug=''):
        self.id = id
        self.name = name
        self.slug = slug

    def __repr__(self):
        return f"Author(id={self.id!r}, name={self.name!r})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Author':
        return cls(
            id=flex_int(data.get('id')),
            name=data.get('name') or '',
            slug=data.get('slug') or '',
        )


class MediaItem:
    """An uploaded media file referenced from content."""

    def __init__(self, id=0, slug='', title='', media_type='', mime_type='', source_url='',
                 width=0, height=0, file=''):
        self.id = id
        self.slug = slug
        self.title = title
        self.media_type = media_type
        self.mime_type = mime_type
        self.source_url = source_url
        self.width = width
        self.height = height
        self.file = file

    def __repr__(self):
        return f"MediaItem(id={self.id!r}, file={self.file!r})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MediaItem':
        title = data.get('title') or ''
        if isinstance(title, dict):
            title = title.get('rendered', '')
        details = data.get('media_details') or {}
        return cls(
            id=flex_int(data.get('id')),
            slug=data.get('slug') or '',
            title=title,
            media_type=data.get('media_type') or '',
            mime_type=data.get('mime_type') or '',
            source_url=data.get('source_url') or '',
            width=flex_int(details.get('width')),
            height=flex_int(details.get('height')),
            file=details.get('file') or '',
        )


class Shortcode:
    """
    Definition of a named content placeholder.

    The type selects a built-in renderer (banner, link, image); any other
    type renders as a plain link or text. A template reference, when set,
    takes precedence over the built-in renderer.
    """

    BUILTIN_FIELDS = ('title', 'text', 'url', 'logo', 'legal')

    def __init__(self, name, type='', template=None, title='', text='', url='', logo='',
                 legal='', data=None):
        self.name = name
        self.type = type
        self.template = template
        self.title = title
        self.text = text
        self.url = url
        self.logo = logo
        self.legal = legal
        self.data = dict(data or {})

    def __repr__(self):
        return f"Shortcode(name={self.name!r}, type={self.type!r})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Shortcode':
        name = data.get('name')
        if not name:
            raise ValueError("shortcode definition is missing 'name'")
        known = {'name', 'type', 'template', 'data'} | set(cls.BUILTIN_FIELDS)
        extra = dict(data.get('data') or {})
        # Unknown top-level keys are kept as free-form data.
        for key, value in data.items():
            if key not in known:
                extra.setdefault(key, value)
        return cls(
            name=str(name),
            type=str(data.get('type') or ''),
            template=data.get('template') or None,
            title=str(data.get('title') or ''),
            text=str(data.get('text') or ''),
            url=str(data.get('url') or ''),
            logo=str(data.get('logo') or ''),
            legal=str(data.get('legal') or ''),
            data=extra,
        )

    def context(self) -> Dict[str, Any]:
        """Template context exposing every field of the shortcode."""
        ctx = dict(self.data)
        ctx.update({
            'name': self.name,
            'type': self.type,
            'title': self.title,
            'text': self.text,
            'url': self.url,
            'logo': self.logo,
            'legal': self.legal,
            'data': self.data,
            'shortcode': self,
        })
        return ctx


class SiteData:
    """Everything loaded for one generation run."""

    def __init__(self, domain='', pages=None, posts=None, categories=None, media=None, authors=None):
        self.domain = domain
        self.pages: List[Page] = list(pages or [])
        self.posts: List[Page] = list(posts or [])
        self.categories: Dict[int, Category] = dict(categories or {})
        self.media: Dict[int, MediaItem] = dict(media or {})
        self.authors: Dict[int, Author] = dict(authors or {})

    def sort_posts(self):
        """Order posts newest first; equal dates keep their load order."""
        self.posts = sorted(self.posts, key=lambda p: p.date, reverse=True)

    def apply_url_format(self, url_format: str):
        for post in self.posts:
            post.url_format = url_format

    def category_posts(self) -> Dict[int, List[Page]]:
        """
        Map category id to its posts, for categories that get a listing page.

        Unknown category ids and the uncategorized category are left out.
        """
        grouped: Dict[int, List[Page]] = {}
        for post in self.posts:
            for cat_id in post.categories:
                if cat_id == UNCATEGORIZED_ID or cat_id not in self.categories:
                    continue
                bucket = grouped.setdefault(cat_id, [])
                if post not in bucket:
                    bucket.append(post)
        return grouped
