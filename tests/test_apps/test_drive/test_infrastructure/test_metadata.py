"""Tests for metadata extraction and name validation."""

import pytest

from server.apps.drive.exceptions import InvalidNameError
from server.apps.drive.infrastructure.metadata import (
    detect_mime_type,
    get_file_extension,
    safe_blob_suffix,
    validate_item_name,
)


@pytest.mark.parametrize(('name', 'expected'), [
    ('Documents', 'Documents'),
    ('  padded name  ', 'padded name'),
    ('q1.pdf', 'q1.pdf'),
    ('x' * 255, 'x' * 255),
])
def test_validate_item_name_accepts(name, expected):
    """Test valid names are returned stripped."""
    assert validate_item_name(name) == expected


@pytest.mark.parametrize('name', [
    '',
    '   ',
    'x' * 256,
    'a/b',
    'nul\x00byte',
])
def test_validate_item_name_rejects(name):
    """Test empty, long and path-like names are rejected."""
    with pytest.raises(InvalidNameError):
        validate_item_name(name)


def test_detect_mime_type():
    """Test MIME detection from extension."""
    assert detect_mime_type('report.pdf') == 'application/pdf'
    assert detect_mime_type('notes.txt') == 'text/plain'


def test_detect_mime_type_unknown():
    """Test unknown extensions fall back to octet-stream."""
    assert detect_mime_type('blob.unknownext') == 'application/octet-stream'
    assert detect_mime_type('Makefile') == 'application/octet-stream'


def test_get_file_extension():
    """Test extension extraction is lowercase and dotless."""
    assert get_file_extension('photo.JPG') == 'jpg'
    assert get_file_extension('archive.tar.gz') == 'gz'
    assert get_file_extension('README') == ''


def test_safe_blob_suffix():
    """Test only short alphanumeric extensions survive."""
    assert safe_blob_suffix('photo.JPG') == '.jpg'
    assert safe_blob_suffix('README') == ''
    assert safe_blob_suffix('file.has-dash') == ''
    assert safe_blob_suffix('file.' + 'x' * 17) == ''
