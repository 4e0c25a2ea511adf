"""
Tests for per-category upload validation.
"""

import pytest

from src.services.storage import UploadValidationError
from src.utils import IMAGE_MAX_SIZE, SCRIPT_MAX_SIZE, validate_upload


@pytest.mark.parametrize('category,name,content_type', [
    ('screenplay', 'draft.pdf', 'application/pdf'),
    ('PITCHDECK', 'deck.pptx', 'application/vnd.openxmlformats-officedocument.presentationml.presentation'),
    ('treatment', 'notes.docx', 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'),
    ('cover', 'poster.webp', 'image/webp'),
    ('profile', 'me.JPG', 'image/jpeg'),
])
def test_accepted(category, name, content_type):
    assert validate_upload(category, name, content_type, 1024) == category.lower()


def test_script_size_limit():
    assert validate_upload('screenplay', 'a.pdf', 'application/pdf', SCRIPT_MAX_SIZE)
    with pytest.raises(UploadValidationError, match='under 25MB'):
        validate_upload('screenplay', 'a.pdf', 'application/pdf', SCRIPT_MAX_SIZE + 1)


def test_image_size_limit():
    with pytest.raises(UploadValidationError, match='under 10MB'):
        validate_upload('cover', 'a.png', 'image/png', IMAGE_MAX_SIZE + 1)


def test_extension_and_content_type_must_both_match():
    with pytest.raises(UploadValidationError):
        validate_upload('cover', 'a.gif', 'image/png', 10)
    with pytest.raises(UploadValidationError):
        validate_upload('cover', 'a.png', 'image/gif', 10)


def test_content_type_parameters_ignored():
    assert validate_upload('screenplay', 'a.pdf', 'application/pdf; charset=binary', 10) == 'screenplay'


def test_empty_and_unknown():
    with pytest.raises(UploadValidationError, match='empty'):
        validate_upload('cover', 'a.png', 'image/png', 0)
    with pytest.raises(UploadValidationError, match='Invalid file type specified'):
        validate_upload(None, 'a.png', 'image/png', 10)
