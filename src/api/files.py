"""
File serving and file integrity administration.

Serving falls back across backends and never answers a missing object with
a 500. The health check, cleanup, delete and storage status endpoints are
admin only.
"""

from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, request, send_file
from flask_login import current_user, login_required

from src.config import app_config
from src.services.integrity import IntegrityScanner, ReconciliationEngine, storage_status
from src.services.script_files import clear_cover_image, clear_profile_photo, delete_script_file
from src.services.storage import NotFoundError, UnparseableReferenceError, get_storage_service
from src.services.storage.keys import LOCAL_API_PREFIX

# Create blueprint
files_bp = Blueprint('files', __name__)

DELETABLE_FILE_TYPES = ('script_file', 'cover_image', 'user_photo')


def _admin_required_response():
    return jsonify({'error': 'Admin access required'}), 403


def _utc_timestamp():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes')


def _build_scanner(storage, strict=None):
    if strict is None:
        strict = app_config.INTEGRITY_STRICT_MODE
    return IntegrityScanner(storage, max_workers=app_config.INTEGRITY_SCAN_WORKERS, strict=strict)


# --- Routes ---

@files_bp.route('/api/files/health-check', methods=['GET'])
@login_required
def health_check():
    if not current_user.is_admin:
        return _admin_required_response()

    strict = _parse_bool(request.args.get('strict'), app_config.INTEGRITY_STRICT_MODE)
    try:
        report = _build_scanner(get_storage_service(), strict=strict).scan()
    except Exception as e:
        current_app.logger.error(f"File health check failed: {e}", exc_info=True)
        return jsonify({'error': 'Failed to perform health check'}), 500

    result = report.to_dict()
    result['timestamp'] = _utc_timestamp()
    return jsonify(result)


@files_bp.route('/api/files/cleanup', methods=['POST'])
@login_required
def cleanup_broken_references():
    if not current_user.is_admin:
        return _admin_required_response()

    data = request.get_json(silent=True) or {}
    dry_run = _parse_bool(data.get('dry_run'))
    strict = _parse_bool(data.get('strict'), app_config.INTEGRITY_STRICT_MODE)

    try:
        # Always a fresh scan; a report from an earlier request may be stale
        report = _build_scanner(get_storage_service(), strict=strict).scan()
        result = ReconciliationEngine().reconcile(report, dry_run=dry_run)
    except Exception as e:
        current_app.logger.error(f"File cleanup failed: {e}", exc_info=True)
        return jsonify({'error': 'Failed to perform cleanup'}), 500

    current_app.logger.info(
        f"File cleanup by {current_user.email}: {result.total_items_cleaned} cleaned, "
        f"{result.skipped} skipped, {len(result.errors)} errors (dry_run={dry_run})"
    )
    response = {
        'success': not result.errors,
        'message': 'Dry run completed, no changes made' if dry_run else 'Cleanup completed successfully',
        'report': report.summary(),
        'timestamp': _utc_timestamp(),
    }
    response.update(result.to_dict())
    return jsonify(response)


@files_bp.route('/api/files/delete', methods=['DELETE'])
@login_required
def delete_file_reference():
    if not current_user.is_admin:
        return _admin_required_response()

    data = request.get_json(silent=True) or {}
    file_id = data.get('fileId')
    file_type = data.get('fileType')

    if not file_id or not file_type:
        return jsonify({'error': 'File ID and type are required'}), 400
    if file_type not in DELETABLE_FILE_TYPES:
        return jsonify({'error': 'Invalid file type'}), 400
    try:
        file_id = int(file_id)
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid file ID'}), 400

    storage = get_storage_service()
    try:
        if file_type == 'script_file':
            deleted = delete_script_file(file_id, storage, deleted_by=current_user.id)
            not_found_message = 'Script file not found'
        elif file_type == 'cover_image':
            deleted = clear_cover_image(file_id, storage, deleted_by=current_user.id)
            not_found_message = 'Cover image not found'
        else:
            deleted = clear_profile_photo(file_id, storage)
            not_found_message = 'User photo not found'
    except Exception as e:
        current_app.logger.error(f"Error deleting {file_type} {file_id}: {e}", exc_info=True)
        return jsonify({'error': 'Failed to delete file'}), 500

    if deleted is None:
        return jsonify({'error': not_found_message}), 404

    current_app.logger.info(f"{current_user.email} deleted {file_type} {file_id}")
    return jsonify({
        'success': True,
        'message': 'File deleted successfully',
        'fileType': file_type,
        'fileId': file_id,
    })


@files_bp.route('/api/files/storage-status', methods=['GET'])
@login_required
def get_storage_status():
    if not current_user.is_admin:
        return _admin_required_response()

    try:
        return jsonify(storage_status(get_storage_service()))
    except Exception as e:
        current_app.logger.error(f"Storage status failed: {e}", exc_info=True)
        return jsonify({'error': 'Failed to read storage status'}), 500


@files_bp.route('/api/files/<path:filename>', methods=['GET'])
def serve_file(filename):
    storage = get_storage_service()
    try:
        delivery = storage.open_url(f'{LOCAL_API_PREFIX}{filename}')
    except (UnparseableReferenceError, NotFoundError) as e:
        current_app.logger.info(f"File not found: {filename} ({e})")
        return jsonify({'error': 'File not found'}), 404

    if delivery.mode == 'local_file':
        response = send_file(
            delivery.local_path,
            mimetype=delivery.mimetype or 'application/octet-stream',
            conditional=True,
        )
    else:
        response = Response(delivery.body, mimetype=delivery.mimetype or 'application/octet-stream')
    response.headers['Cache-Control'] = 'public, max-age=31536000'
    return response
