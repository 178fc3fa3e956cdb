"""
Tests for the content model and URL resolution.
"""

import pytest
import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pressed_pkg.models import (Category, MediaItem, Page, Shortcode, SiteData, UNKNOWN_DATE,
                                URL_FORMAT_DATE, URL_FORMAT_SLUG, flex_int, is_root_path)


class TestFlexInt:
    """Test coercion of JSON numbers and numeric strings."""

    def test_numbers_and_strings(self):
        """Test ints, floats and numeric strings."""
        assert flex_int(5) == 5
        assert flex_int('12') == 12
        assert flex_int(' 7 ') == 7
        assert flex_int(3.0) == 3

    def test_empty_values(self):
        """Test that empty values become zero."""
        assert flex_int('') == 0
        assert flex_int(None) == 0

    def test_invalid_values(self):
        """Test that non-numeric values raise ValueError."""
        with pytest.raises(ValueError):
            flex_int('abc')
        with pytest.raises(ValueError):
            flex_int([1])


class TestPageURLs:
    """Test URL and output path resolution."""

    def test_post_date_url(self):
        """Test that posts default to the date scheme."""
        post = Page(slug='hello', type='post', date=datetime(2024, 1, 5, 10, 30), url_format=URL_FORMAT_DATE)
        assert post.url == '/2024/01/05/hello/'
        assert post.output_path == '2024/01/05/hello'

    def test_post_date_url_ignores_link(self):
        """Test that the date scheme does not look at the link."""
        post = Page(slug='hello', type='post', date=datetime(2024, 12, 31),
                    link='https://example.com/other/', url_format=URL_FORMAT_DATE)
        assert post.url == '/2024/12/31/hello/'

    def test_post_slug_url_uses_link_path(self):
        """Test the slug scheme with a link."""
        post = Page(slug='hello', type='post', link='https://example.com/blog/hello',
                    url_format=URL_FORMAT_SLUG)
        assert post.url == '/blog/hello/'

    def test_post_slug_url_without_link(self):
        """Test the slug scheme falls back to the slug."""
        post = Page(slug='hello', type='post', url_format=URL_FORMAT_SLUG)
        assert post.url == '/hello/'

    def test_page_link_path(self):
        """Test that pages use the path of their link."""
        page = Page(slug='about', link='https://example.com/about/')
        assert page.url == '/about/'
        assert page.output_path == 'about'

    def test_page_link_without_trailing_slash(self):
        """Test that the link path is normalized with slashes."""
        page = Page(slug='x', link='https://example.com/company/team')
        assert page.url == '/company/team/'
        assert page.output_path == 'company/team'

    def test_page_without_link(self):
        """Test that pages without a link use the slug."""
        assert Page(slug='contact').url == '/contact/'

    def test_page_unparseable_link(self):
        """Test that a link that does not parse falls back to the slug."""
        page = Page(slug='broken', link='http://[broken')
        assert page.url == '/broken/'

    def test_page_link_to_root(self):
        """Test that a link to the domain root resolves to the homepage path."""
        page = Page(slug='home', link='https://example.com')
        assert page.url == '/'
        assert is_root_path(page.output_path)

    def test_canonical(self):
        """Test canonical URLs."""
        page = Page(slug='about', link='https://old.example.org/about/')
        assert page.canonical('example.com') == 'https://example.com/about/'

    def test_is_root_path(self):
        """Test root path detection."""
        assert is_root_path('')
        assert is_root_path('.')
        assert not is_root_path('about')


class TestPage:
    """Test Page helpers."""

    def test_has_valid_categories(self):
        """Test that only the uncategorized category is not a valid one."""
        assert Page(type='post', categories=[1, 5]).has_valid_categories()
        assert not Page(type='post', categories=[1]).has_valid_categories()
        assert not Page(type='post').has_valid_categories()

    def test_defaults(self):
        """Test default values."""
        page = Page()
        assert page.date == UNKNOWN_DATE
        assert page.categories == []
        assert not page.is_post


class TestCategoryAndMedia:
    """Test metadata entity parsing."""

    def test_category_url(self):
        """Test category URL."""
        assert Category(id=5, slug='news').url == '/category/news/'

    def test_category_from_dict_flexible_numbers(self):
        """Test that count and id may be strings."""
        category = Category.from_dict({'id': '5', 'name': 'News', 'slug': 'news', 'count': '3'})
        assert category.id == 5
        assert category.count == 3

    def test_media_from_dict(self):
        """Test media item parsing with nested fields."""
        item = MediaItem.from_dict({
            'id': 42,
            'slug': 'photo',
            'title': {'rendered': 'Photo'},
            'media_details': {'width': '800', 'height': 600, 'file': '2024/01/photo.jpg'},
        })
        assert item.title == 'Photo'
        assert item.width == 800
        assert item.height == 600
        assert item.file == '2024/01/photo.jpg'

    def test_media_from_dict_missing_details(self):
        """Test that missing media details are tolerated."""
        item = MediaItem.from_dict({'id': '7'})
        assert item.id == 7
        assert item.file == ''
        assert item.width == 0


class TestShortcodeModel:
    """Test shortcode definitions."""

    def test_from_dict_keeps_unknown_keys(self):
        """Test that unknown keys end up in data."""
        sc = Shortcode.from_dict({'name': 'promo', 'type': 'banner', 'code': 'SAVE10'})
        assert sc.data == {'code': 'SAVE10'}
        assert sc.context()['code'] == 'SAVE10'
        assert sc.context()['data']['code'] == 'SAVE10'

    def test_from_dict_requires_name(self):
        """Test that a definition without a name is rejected."""
        with pytest.raises(ValueError):
            Shortcode.from_dict({'type': 'banner'})


class TestSiteData:
    """Test site-level collections."""

    def test_sort_posts_newest_first_and_stable(self):
        """Test that equal dates keep their load order."""
        a = Page(slug='a', type='post', date=datetime(2024, 1, 1))
        b = Page(slug='b', type='post', date=datetime(2024, 3, 1))
        c = Page(slug='c', type='post', date=datetime(2024, 1, 1))
        site = SiteData(posts=[a, b, c])
        site.sort_posts()
        assert [p.slug for p in site.posts] == ['b', 'a', 'c']

    def test_apply_url_format(self, sample_site):
        """Test that the URL scheme is injected into every post."""
        sample_site.apply_url_format(URL_FORMAT_SLUG)
        assert all(post.url_format == URL_FORMAT_SLUG for post in sample_site.posts)
        assert sample_site.posts[0].url == '/hello-world/'

    def test_category_posts(self, sample_site):
        """Test that uncategorized and unknown categories get no listing."""
        sample_site.posts[0].categories.append(99)
        grouped = sample_site.category_posts()
        assert list(grouped.keys()) == [5]
        assert [p.slug for p in grouped[5]] == ['hello-world']
