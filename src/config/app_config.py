"""
Application configuration read from the environment.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).strip().lower() in ('true', '1', 'yes')


def _env_str(name, default=None):
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.split('#')[0].strip()
    return value or default


SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI', 'sqlite:////data/instance/scriptrack.db')
SECRET_KEY = os.environ.get('SECRET_KEY', 'default-dev-key-change-in-production')
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# Durable object storage. All three of key id, secret and bucket must be set
# for the S3 backend to be selected.
AWS_ACCESS_KEY_ID = _env_str('AWS_ACCESS_KEY_ID')
AWS_SECRET_ACCESS_KEY = _env_str('AWS_SECRET_ACCESS_KEY')
AWS_SESSION_TOKEN = _env_str('AWS_SESSION_TOKEN')
AWS_S3_BUCKET = _env_str('AWS_S3_BUCKET')
AWS_REGION = _env_str('AWS_REGION', 'us-east-1')
S3_ENDPOINT_URL = _env_str('S3_ENDPOINT_URL')
S3_USE_PATH_STYLE = _env_flag('S3_USE_PATH_STYLE')
S3_VERIFY_SSL = _env_flag('S3_VERIFY_SSL', 'true')
CDN_BASE_URL = _env_str('CDN_BASE_URL')

# Local storage (persistent mount + read-only legacy directory)
PERSISTENT_UPLOAD_DIR = _env_str('PERSISTENT_UPLOAD_DIR', '/data/persistent-uploads')
LEGACY_UPLOAD_DIR = _env_str('LEGACY_UPLOAD_DIR', '/data/uploads-backup')

# Integrity scanning
INTEGRITY_SCAN_WORKERS = int(os.environ.get('INTEGRITY_SCAN_WORKERS', '8'))
INTEGRITY_STRICT_MODE = _env_flag('INTEGRITY_STRICT_MODE')

# Periodic report-only scan (never reconciles)
ENABLE_INTEGRITY_MONITOR = _env_flag('ENABLE_INTEGRITY_MONITOR')
INTEGRITY_MONITOR_INTERVAL_MINUTES = int(os.environ.get('INTEGRITY_MONITOR_INTERVAL_MINUTES', '30'))

UPLOAD_RATE_LIMIT = os.environ.get('UPLOAD_RATE_LIMIT', '60 per minute')


def initialize_config(app):
    """Apply configuration to the Flask app and log the storage setup."""
    app.config['SQLALCHEMY_DATABASE_URI'] = SQLALCHEMY_DATABASE_URI
    if SQLALCHEMY_DATABASE_URI.startswith('sqlite:///'):
        db_dir = os.path.dirname(SQLALCHEMY_DATABASE_URI[len('sqlite:///'):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    app.config['SECRET_KEY'] = SECRET_KEY
    # Multipart bodies above the largest per-category ceiling are refused by Werkzeug
    app.config['MAX_CONTENT_LENGTH'] = int(os.environ.get('MAX_CONTENT_LENGTH', str(30 * 1024 * 1024)))

    durable = bool(AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY and AWS_S3_BUCKET)
    if durable:
        app.logger.info(f"File storage: S3 bucket '{AWS_S3_BUCKET}' ({AWS_REGION}), local fallback at {PERSISTENT_UPLOAD_DIR}")
    else:
        app.logger.info(f"File storage: local filesystem at {PERSISTENT_UPLOAD_DIR} (legacy: {LEGACY_UPLOAD_DIR})")
    if CDN_BASE_URL:
        app.logger.info(f"CDN base URL: {CDN_BASE_URL}")
