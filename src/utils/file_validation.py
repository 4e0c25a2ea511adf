"""
Upload validation rules per upload category.

Each failure raises UploadValidationError with a message that can be shown
to the user as-is.
"""

import os

from src.services.storage.exceptions import UploadValidationError
from src.services.storage.keys import IMAGE_CATEGORIES, SCRIPT_FILE_CATEGORIES

MB = 1024 * 1024

SCRIPT_MAX_SIZE = 25 * MB
IMAGE_MAX_SIZE = 10 * MB

SCRIPT_CONTENT_TYPES = {
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-powerpoint',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
}
SCRIPT_EXTENSIONS = {'.pdf', '.doc', '.docx', '.ppt', '.pptx'}

IMAGE_CONTENT_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp'}
IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp'}


def validate_upload(category, file_name, content_type, size):
    """
    Check an upload against the rules of its category.

    Args:
        category: Upload category ('screenplay', 'cover', ...)
        file_name: Original file name as sent by the client
        content_type: MIME type as sent by the client
        size: Size in bytes

    Returns:
        The normalized category

    Raises:
        UploadValidationError: If the upload is not acceptable
    """
    category = (category or '').strip().lower()
    extension = os.path.splitext(file_name or '')[1].lower()
    content_type = (content_type or '').split(';')[0].strip().lower()

    if category in SCRIPT_FILE_CATEGORIES:
        if content_type not in SCRIPT_CONTENT_TYPES or extension not in SCRIPT_EXTENSIONS:
            raise UploadValidationError(
                'Invalid file type. Only PDF, DOC, DOCX, PPT, and PPTX files are allowed for script files.'
            )
        if size > SCRIPT_MAX_SIZE:
            raise UploadValidationError('File too large. Script files must be under 25MB.')
    elif category in IMAGE_CATEGORIES:
        if content_type not in IMAGE_CONTENT_TYPES or extension not in IMAGE_EXTENSIONS:
            raise UploadValidationError('Invalid file type. Only JPEG, PNG, and WebP images are allowed.')
        if size > IMAGE_MAX_SIZE:
            raise UploadValidationError('File too large. Images must be under 10MB.')
    else:
        raise UploadValidationError('Invalid file type specified')

    if not size:
        raise UploadValidationError('The uploaded file is empty.')

    return category
