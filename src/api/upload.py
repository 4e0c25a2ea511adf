"""
File upload endpoint for script documents, cover images and profile photos.
"""

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required

from src.services.storage import UploadValidationError, get_storage_service
from src.utils import validate_upload

# Create blueprint
upload_bp = Blueprint('upload', __name__)


# --- Routes ---

@upload_bp.route('/api/upload', methods=['POST'])
@login_required
def upload_file():
    file = request.files.get('file')
    category = request.form.get('type', '')

    if file is None or not file.filename:
        return jsonify({'error': 'No file provided'}), 400

    try:
        data = file.read()
        category = validate_upload(category, file.filename, file.mimetype, len(data))

        storage = get_storage_service()
        result = storage.upload(data, file.filename, file.mimetype, category=category)
    except UploadValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error uploading file {file.filename}: {e}", exc_info=True)
        return jsonify({'error': 'Failed to upload file. Please try again.'}), 500

    file_url = result.persisted_url
    current_app.logger.info(f"Uploaded {file.filename} as {result.key} ({result.backend})")
    return jsonify({
        'success': True,
        'url': file_url,
        'fileUrl': file_url,
        'key': result.key,
        'cdnUrl': result.cdn_url,
        'fileName': file.filename,
        'fileSize': result.size,
        'type': category,
        'backend': result.backend,
    })
