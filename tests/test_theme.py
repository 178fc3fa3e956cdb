"""
Tests for remote theme download and extraction.
"""

import pytest
import io
import os
import sys
import zipfile
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pressed_pkg import theme
from pressed_pkg.theme import (ThemeDownloadError, convert_to_archive_url, download_theme, extract_zip,
                               replace_theme)


def make_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def mock_requestor(payload, success=True):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = [payload[:10], payload[10:]]
    requestor = MagicMock()
    requestor.safe_get.return_value = (success, response if success else 'URL validation failed: nope')
    return requestor


class TestConvertToArchiveURL:
    """Test repository URL conversion."""

    @pytest.mark.parametrize('url, expected', [
        ('https://github.com/user/theme', 'https://github.com/user/theme/archive/refs/heads/main.zip'),
        ('https://github.com/user/theme/', 'https://github.com/user/theme/archive/refs/heads/main.zip'),
        ('https://github.com/user/theme.git', 'https://github.com/user/theme/archive/refs/heads/main.zip'),
        ('https://gitlab.com/user/theme', 'https://gitlab.com/user/theme/-/archive/main/archive.zip'),
        ('https://example.com/theme.zip', 'https://example.com/theme.zip'),
        ('https://github.com/user/theme/archive/v1.tar.gz', 'https://github.com/user/theme/archive/v1.tar.gz'),
        ('https://example.com/theme', 'https://example.com/theme'),
    ])
    def test_convert(self, url, expected):
        """Test GitHub, GitLab and direct URLs."""
        assert convert_to_archive_url(url) == expected


class TestExtractZip:
    """Test archive extraction."""

    def test_strips_top_level_directory(self, temp_dir):
        """Test that the archive's single top-level directory is dropped."""
        archive = os.path.join(temp_dir, 'theme.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({
                'theme-main/index.html': 'INDEX',
                'theme-main/css/style.css': 'body{}',
            }))

        dest = os.path.join(temp_dir, 'dest')
        extract_zip(archive, dest)
        with open(os.path.join(dest, 'index.html')) as f:
            assert f.read() == 'INDEX'
        assert os.path.exists(os.path.join(dest, 'css', 'style.css'))

    def test_flat_archive(self, temp_dir):
        """Test an archive without a common top-level directory."""
        archive = os.path.join(temp_dir, 'theme.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({'index.html': 'INDEX', 'css/style.css': 'body{}'}))

        dest = os.path.join(temp_dir, 'dest')
        extract_zip(archive, dest)
        assert os.path.exists(os.path.join(dest, 'index.html'))
        assert os.path.exists(os.path.join(dest, 'css', 'style.css'))

    def test_single_file_archive(self, temp_dir):
        """Test an archive holding one top-level file."""
        archive = os.path.join(temp_dir, 'theme.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({'index.html': 'INDEX'}))

        dest = os.path.join(temp_dir, 'dest')
        extract_zip(archive, dest)
        with open(os.path.join(dest, 'index.html')) as f:
            assert f.read() == 'INDEX'

    def test_mixed_top_level_entries_keep_paths(self, temp_dir):
        """Test that a top-level file next to a directory disables prefix stripping."""
        archive = os.path.join(temp_dir, 'theme.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({'css/style.css': 'body{}', 'css.html': 'C'}))

        dest = os.path.join(temp_dir, 'dest')
        extract_zip(archive, dest)
        assert os.path.exists(os.path.join(dest, 'css', 'style.css'))
        assert os.path.exists(os.path.join(dest, 'css.html'))

    def test_rejects_path_traversal(self, temp_dir):
        """Test that entries escaping the destination are rejected."""
        archive = os.path.join(temp_dir, 'evil.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({'theme/index.html': 'x', 'theme/../../evil.txt': 'boom'}))

        with pytest.raises(ThemeDownloadError, match='Invalid file path'):
            extract_zip(archive, os.path.join(temp_dir, 'dest'))
        assert not os.path.exists(os.path.join(temp_dir, 'evil.txt'))

    def test_rejects_oversized_entries(self, temp_dir):
        """Test the per-entry size limit."""
        archive = os.path.join(temp_dir, 'big.zip')
        with open(archive, 'wb') as f:
            f.write(make_zip({'index.html': 'x' * 2048}))

        with patch.object(theme, 'MAX_ENTRY_SIZE', 1024):
            with pytest.raises(ThemeDownloadError, match='too large'):
                extract_zip(archive, os.path.join(temp_dir, 'dest'))


class TestDownloadTheme:
    """Test downloading with a mocked requestor."""

    def test_download_and_extract(self, temp_dir):
        """Test a successful download."""
        requestor = mock_requestor(make_zip({'repo-main/index.html': 'INDEX'}))
        dest = os.path.join(temp_dir, 'theme')

        archive_url = download_theme('https://github.com/user/repo', dest, requestor)

        assert archive_url == 'https://github.com/user/repo/archive/refs/heads/main.zip'
        requestor.safe_get.assert_called_once_with(archive_url, allow_redirects=True, stream=True)
        assert os.path.exists(os.path.join(dest, 'index.html'))

    def test_download_failure(self, temp_dir):
        """Test that a rejected URL raises."""
        requestor = mock_requestor(b'', success=False)
        with pytest.raises(ThemeDownloadError, match='URL validation failed'):
            download_theme('https://github.com/user/repo', os.path.join(temp_dir, 'theme'), requestor)

    def test_not_a_zip(self, temp_dir):
        """Test that a non-ZIP response raises."""
        requestor = mock_requestor(b'<html>not a zip</html>')
        with pytest.raises(ThemeDownloadError, match='not a valid ZIP'):
            download_theme('https://example.com/theme.zip', os.path.join(temp_dir, 'theme'), requestor)


class TestReplaceTheme:
    """Test replacing the local theme directory."""

    def test_replace_existing_theme(self, temp_dir):
        """Test that old files are removed on success."""
        dest = os.path.join(temp_dir, 'theme')
        os.makedirs(dest)
        with open(os.path.join(dest, 'old.html'), 'w') as f:
            f.write('old')

        requestor = mock_requestor(make_zip({'repo-main/index.html': 'NEW'}))
        replace_theme('https://github.com/user/repo', dest, requestor)

        assert not os.path.exists(os.path.join(dest, 'old.html'))
        with open(os.path.join(dest, 'index.html')) as f:
            assert f.read() == 'NEW'

    def test_failed_download_keeps_theme(self, temp_dir):
        """Test that a failed download leaves the existing theme alone."""
        dest = os.path.join(temp_dir, 'theme')
        os.makedirs(dest)
        with open(os.path.join(dest, 'index.html'), 'w') as f:
            f.write('old')

        with pytest.raises(ThemeDownloadError):
            replace_theme('https://github.com/user/repo', dest, mock_requestor(b'', success=False))
        with open(os.path.join(dest, 'index.html')) as f:
            assert f.read() == 'old'
