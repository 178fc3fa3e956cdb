"""
Remote theme download.

A theme can be fetched from a GitHub or GitLab repository URL, or from a
direct .zip link, and unpacked into the local templates directory.
"""

import logging
import os
import shutil
import tempfile
import zipfile

import requests

from .url_validator import SafeRequestor, URLValidator

logger = logging.getLogger('Pressed.theme')

# Per-entry extraction limit against zip bombs.
MAX_ENTRY_SIZE = 100 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


class ThemeDownloadError(Exception):
    """A theme archive could not be downloaded or extracted."""


def convert_to_archive_url(url: str) -> str:
    """Turn a GitHub/GitLab repository URL into its main-branch ZIP archive URL."""
    if url.endswith('.zip') or url.endswith('.tar.gz'):
        return url

    if 'github.com' in url:
        url = url.rstrip('/')
        if url.endswith('.git'):
            url = url[:-len('.git')]
        return url + '/archive/refs/heads/main.zip'

    if 'gitlab.com' in url:
        url = url.rstrip('/')
        if url.endswith('.git'):
            url = url[:-len('.git')]
        return url + '/-/archive/main/archive.zip'

    return url


def _common_prefix(names):
    """The single top-level directory shared by every entry, or ''."""
    if not names or any('/' not in name for name in names):
        return ''
    first = names[0].split('/', 1)[0] + '/'
    if all(name.startswith(first) for name in names):
        return first
    return ''


def extract_zip(archive_path: str, dest_dir: str):
    """
    Extract a theme archive into dest_dir, dropping the archive's top-level
    directory. Entries that would land outside dest_dir are rejected.
    """
    os.makedirs(dest_dir, exist_ok=True)
    dest_root = os.path.abspath(dest_dir)

    with zipfile.ZipFile(archive_path) as archive:
        infos = archive.infolist()
        prefix = _common_prefix([info.filename for info in infos])

        for info in infos:
            name = info.filename
            if prefix and name.startswith(prefix):
                name = name[len(prefix):]
            if not name:
                continue

            target = os.path.abspath(os.path.join(dest_root, name))
            if not target.startswith(dest_root + os.sep):
                raise ThemeDownloadError(f"Invalid file path in archive: {info.filename}")

            if info.is_dir():
                os.makedirs(target, exist_ok=True)
                continue

            if info.file_size > MAX_ENTRY_SIZE:
                raise ThemeDownloadError(f"Archive entry too large: {info.filename}")

            os.makedirs(os.path.dirname(target), exist_ok=True)
            written = 0
            with archive.open(info) as src, open(target, 'wb') as dst:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > MAX_ENTRY_SIZE:
                        raise ThemeDownloadError(f"Archive entry too large: {info.filename}")
                    dst.write(chunk)
            logger.debug(f"Extracted {name}")


def download_theme(url: str, dest_dir: str, requestor: SafeRequestor = None) -> str:
    """
    Download a theme archive and extract it into dest_dir.

    Returns the archive URL that was fetched.
    """
    archive_url = convert_to_archive_url(url)
    logger.info(f"Downloading theme from {archive_url}")

    session = None
    if requestor is None:
        session = requests.Session()
        requestor = SafeRequestor(URLValidator(), session)

    fd, tmp_path = tempfile.mkstemp(prefix='theme-', suffix='.zip')
    os.close(fd)
    try:
        success, result = requestor.safe_get(archive_url, allow_redirects=True, stream=True)
        if not success:
            raise ThemeDownloadError(f"Failed to download theme: {result}")

        with result as response, open(tmp_path, 'wb') as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)

        logger.info(f"Extracting theme to {dest_dir}")
        try:
            extract_zip(tmp_path, dest_dir)
        except zipfile.BadZipFile as e:
            raise ThemeDownloadError(f"Downloaded theme is not a valid ZIP archive: {e}") from e
    finally:
        os.remove(tmp_path)
        if session is not None:
            session.close()

    logger.info("Theme downloaded successfully")
    return archive_url


def replace_theme(url: str, dest_dir: str, requestor: SafeRequestor = None) -> str:
    """Download into a fresh directory, replacing dest_dir only on success."""
    staging = tempfile.mkdtemp(prefix='pressed-theme-')
    try:
        archive_url = download_theme(url, staging, requestor)
        if os.path.exists(dest_dir):
            shutil.rmtree(dest_dir)
        shutil.copytree(staging, dest_dir)
    finally:
        shutil.rmtree(staging, ignore_errors=True)
    return archive_url
