"""
Script endpoints that change file references: new file versions and
script deletion.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from src.database import db
from src.models import SCRIPT_FILE_TYPES, Script
from src.services.script_files import add_script_file, delete_script

# Create blueprint
scripts_bp = Blueprint('scripts', __name__)


def _can_manage_files(script, user):
    return script.submitted_by == user.id or user.role in ('ADMIN', 'EXECUTIVE')


# --- Routes ---

@scripts_bp.route('/api/scripts/<int:script_id>/files', methods=['POST'])
@login_required
def add_file(script_id):
    data = request.get_json(silent=True) or {}
    file_type = (data.get('fileType') or '').upper()
    file_name = data.get('fileName')
    file_url = data.get('fileUrl')
    file_size = data.get('fileSize')

    if not file_type or not file_name or not file_url or not file_size:
        return jsonify({'error': 'Missing required file information'}), 400
    if file_type not in SCRIPT_FILE_TYPES:
        return jsonify({'error': f'Invalid file type: {file_type}'}), 400

    script = db.session.get(Script, script_id)
    if script is None:
        return jsonify({'error': 'Script not found'}), 404
    if not _can_manage_files(script, current_user):
        return jsonify({'error': 'Permission denied'}), 403

    try:
        new_file = add_script_file(script, file_type, file_name, file_url, file_size, current_user.id)
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error adding file to script {script_id}: {e}", exc_info=True)
        return jsonify({'error': 'Failed to add file to script'}), 500

    return jsonify(new_file.to_dict()), 201


@scripts_bp.route('/api/scripts/<int:script_id>', methods=['DELETE'])
@login_required
def remove_script(script_id):
    script = db.session.get(Script, script_id)
    if script is None:
        return jsonify({'error': 'Script not found'}), 404
    if script.submitted_by != current_user.id and not current_user.is_admin:
        return jsonify({'error': 'Permission denied'}), 403

    try:
        delete_script(script_id)
    except Exception as e:
        current_app.logger.error(f"Error deleting script {script_id}: {e}", exc_info=True)
        return jsonify({'error': 'Failed to delete script'}), 500

    current_app.logger.info(f"Script {script_id} deleted by {current_user.email}")
    return jsonify({'success': True, 'message': 'Script deleted successfully'})
