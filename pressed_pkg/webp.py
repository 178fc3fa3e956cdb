"""WebP conversion of generated images."""

import logging
import os
import re

from PIL import Image

logger = logging.getLogger('Pressed.webp')

DEFAULT_QUALITY = 60
CONVERTIBLE_EXTENSIONS = ('.jpg', '.jpeg', '.png')
REFERENCE_RE = re.compile(r'\.(?:jpg|jpeg|png)(["\') ])')


def convert_image_to_webp(image_path, quality=DEFAULT_QUALITY):
    """Convert one image to WebP next to it and remove the original."""
    if os.path.isdir(image_path):
        return None

    webp_path = os.path.splitext(image_path)[0] + '.webp'
    try:
        with Image.open(image_path) as img:
            if img.mode not in ('RGB', 'RGBA'):
                img = img.convert('RGBA' if 'transparency' in img.info else 'RGB')
            img.save(webp_path, 'WEBP', quality=quality)
    except (OSError, ValueError) as e:
        logger.warning(f"Warning: failed to convert {image_path}: {e}")
        return None

    try:
        os.remove(image_path)
    except OSError as e:
        logger.warning(f"Warning: failed to remove original {image_path}: {e}")
    return webp_path


def convert_directory(directory, quality=DEFAULT_QUALITY):
    """
    Convert every JPG/PNG under directory to WebP.

    Returns (converted, saved_bytes).
    """
    if quality <= 0 or quality > 100:
        quality = DEFAULT_QUALITY

    image_paths = []
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in sorted(files):
            if name.lower().endswith(CONVERTIBLE_EXTENSIONS):
                image_paths.append(os.path.join(root, name))

    converted = 0
    saved_bytes = 0
    total = len(image_paths)
    for i, path in enumerate(image_paths, start=1):
        try:
            original_size = os.path.getsize(path)
        except OSError:
            continue
        logger.debug(f"Converting {i}/{total}: {os.path.basename(path)}")
        webp_path = convert_image_to_webp(path, quality)
        if webp_path is None:
            continue
        saved_bytes += original_size - os.path.getsize(webp_path)
        converted += 1

    logger.info(f"Total images converted to WebP: {converted}")
    return converted, saved_bytes


def rewrite_image_references(s):
    """Point .jpg/.jpeg/.png references followed by a quote, ) or space at .webp."""
    return REFERENCE_RE.sub(r'.webp\1', s)


def update_references(directory):
    """Rewrite image references in every HTML and CSS file. Returns files changed."""
    changed = 0
    for root, dirs, files in os.walk(directory):
        for name in files:
            if os.path.splitext(name)[1] not in ('.html', '.css'):
                continue
            path = os.path.join(root, name)
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
            new_content = rewrite_image_references(content)
            if new_content != content:
                with open(path, 'w', encoding='utf-8') as f:
                    f.write(new_content)
                changed += 1
    return changed
