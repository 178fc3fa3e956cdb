"""
Media path normalization.

Rewrites legacy WordPress media references in rendered HTML so that every
file resolves under /media/, and expands video shortcodes into embeds.
Every step is idempotent.
"""

import os
import re
from typing import Dict

from .models import MediaItem

IMAGE_EXTENSIONS = r'(?:jpg|jpeg|png|gif|webp)'

WP_IMAGE_RE = re.compile(r'wp-image-(\d+)')
RELATIVE_ATTR_RE = re.compile(r'''((?:src|href|srcset)=["'])media/''')
SRCSET_ENTRY_RE = re.compile(r', media/')
THUMBNAIL_RE = re.compile(r'''(/media/[^"'\s,]+?)(?:-\d+x\d+)+(\.''' + IMAGE_EXTENSIONS + r''')(?=["'\s,)?#]|$)''')

VIDEO_ID = r'\s*(?:https?://)?(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]+)[^\[]*?\s*'
YOUTUBE_RE = re.compile(r'\[youtube\]' + VIDEO_ID + r'\[/youtube\]')
EMBED_RE = re.compile(r'\[embed\]' + VIDEO_ID + r'\[/embed\]')

VIDEO_EMBED = (
    '<div class="video-container"><iframe width="560" height="315" '
    'src="https://www.youtube.com/embed/{video_id}" title="YouTube video" frameborder="0" '
    'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; '
    'picture-in-picture; web-share" allowfullscreen></iframe></div>'
)


def rewrite_wp_image_urls(content: str, media: Dict[int, MediaItem]) -> str:
    """
    Point absolute WordPress image URLs at the local /media/{id}_{file} copy.

    Driven by the wp-image-{id} classes in the document: any src URL whose
    file name contains the media item's file stem is rewritten.
    """
    seen = set()
    for match in WP_IMAGE_RE.finditer(content):
        media_id = int(match.group(1))
        if media_id in seen:
            continue
        seen.add(media_id)
        item = media.get(media_id)
        if item is None or not item.file:
            continue
        filename = os.path.basename(item.file)
        stem = os.path.splitext(filename)[0]
        if not stem:
            continue
        local_path = f"/media/{media_id}_{filename}"
        old_url = re.compile(
            r'''(src=["'])https?://[^"']*''' + re.escape(stem) + r'''[^"']*\.''' + IMAGE_EXTENSIONS + r'''(["'])''')
        content = old_url.sub(lambda m: m.group(1) + local_path + m.group(2), content)
    return content


def prefix_relative_media(content: str) -> str:
    """Turn media/... in src, href and srcset attributes into /media/...."""
    content = RELATIVE_ATTR_RE.sub(r'\1/media/', content)
    return SRCSET_ENTRY_RE.sub(', /media/', content)


def strip_thumbnail_suffixes(content: str) -> str:
    """
    Drop -WxH size suffixes before the extension of /media/ files.

    Must run after prefix_relative_media, which creates the /media/ anchor.
    """
    return THUMBNAIL_RE.sub(r'\1\2', content)


def expand_video_shortcodes(content: str) -> str:
    """Replace [youtube]URL[/youtube] and [embed]URL[/embed] with an iframe."""
    def embed(match):
        return VIDEO_EMBED.format(video_id=match.group(1))

    content = YOUTUBE_RE.sub(embed, content)
    return EMBED_RE.sub(embed, content)


def fix_media_paths(content: str, media: Dict[int, MediaItem]) -> str:
    content = rewrite_wp_image_urls(content, media)
    content = prefix_relative_media(content)
    content = strip_thumbnail_suffixes(content)
    return expand_video_shortcodes(content)
