"""ZIP packaging of the output tree for Cloudflare Pages."""

import logging
import os
import zipfile

logger = logging.getLogger('Pressed.deploy')

# Cloudflare Pages direct-upload limit.
CLOUDFLARE_LIMIT_MB = 25


def create_zip(source_dir, zip_path):
    """
    Zip the contents of source_dir (not the directory itself) into zip_path.

    Entry names are relative to source_dir and use forward slashes;
    directories get their own entries. Returns the archive size in MB.
    """
    source_root = os.path.abspath(source_dir)
    zip_abs = os.path.abspath(zip_path)

    with zipfile.ZipFile(zip_path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        for root, dirs, files in os.walk(source_root):
            dirs.sort()
            rel_root = os.path.relpath(root, source_root)
            if rel_root != '.':
                archive.write(root, rel_root.replace(os.sep, '/'))
            for name in sorted(files):
                path = os.path.join(root, name)
                if os.path.abspath(path) == zip_abs:
                    continue
                arcname = os.path.relpath(path, source_root).replace(os.sep, '/')
                archive.write(path, arcname)

    size_mb = os.path.getsize(zip_path) / (1024 * 1024)
    logger.info(f"Created deployment package: {zip_path} ({size_mb:.1f} MB)")
    if size_mb > CLOUDFLARE_LIMIT_MB:
        logger.warning(f"Warning: {zip_path} exceeds the Cloudflare Pages {CLOUDFLARE_LIMIT_MB}MB limit")
    return size_mb
