# ScripTrack - file storage and reference integrity service
import os
import sys
import logging

from flask import Flask, jsonify
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

# Application configuration (loads .env before anything reads the environment)
from src.config import app_config
from src.config.app_config import initialize_config

# Configure logging
log_level = app_config.LOG_LEVEL
handler = logging.StreamHandler(sys.stdout)
handler.setLevel(log_level)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
handler.setFormatter(formatter)

# Get the root logger and clear any existing handlers to avoid duplicates
root_logger = logging.getLogger()
root_logger.handlers.clear()
root_logger.setLevel(log_level)
root_logger.addHandler(handler)

# boto3/botocore are chatty at DEBUG
logging.getLogger('botocore').setLevel(logging.WARNING)
logging.getLogger('boto3').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)

# --- Rate Limiting Setup (will be configured after app creation) ---
limiter = Limiter(
    get_remote_address,
    app=None,  # Defer initialization
    default_limits=["5000 per day", "1000 per hour"]
)

app = Flask(__name__)
initialize_config(app)

# Apply ProxyFix to handle headers from a reverse proxy (like Nginx or Caddy)
trusted_proxy_hops = int(os.environ.get('TRUSTED_PROXY_HOPS', '1'))
app.wsgi_app = ProxyFix(
    app.wsgi_app,
    x_for=trusted_proxy_hops,
    x_proto=trusted_proxy_hops,
    x_host=trusted_proxy_hops,
    x_prefix=trusted_proxy_hops
)

app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

# Import database instance from extracted module
from src.database import db
db.init_app(app)

# Import all models so create_all sees every table
from src.models import User, Script, ScriptFile, Assignment, Feedback, Activity, Meeting

# Initialize Flask-Login and other extensions
login_manager = LoginManager()
login_manager.init_app(app)
limiter.init_app(app)  # Initialize the limiter (uses in-memory storage by default)
csrf = CSRFProtect(app)


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required. Please log in and try again.'}), 401


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    return jsonify({'error': 'File too large.'}), 413


@app.errorhandler(CSRFError)
def handle_csrf_error(e):
    return jsonify({'error': f'CSRF validation failed: {e.description}'}), 400


# Import blueprints
from src.api.upload import upload_bp
from src.api.files import files_bp
from src.api.scripts import scripts_bp

# Database initialization (extracted to src/init_db.py)
from src.init_db import initialize_database
with app.app_context():
    initialize_database(app)

# Uploads share one per-client budget
limiter.limit(app_config.UPLOAD_RATE_LIMIT)(upload_bp)

# Register blueprints
app.register_blueprint(upload_bp)
app.register_blueprint(files_bp)
app.register_blueprint(scripts_bp)

# Startup functions (extracted to src/config/startup.py)
from src.config.startup import run_startup_tasks

# Run startup tasks
run_startup_tasks(app)

if __name__ == '__main__':
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument('--debug', action='store_true', help='Run in debug mode')
    args = parser.parse_args()

    # Consider using waitress or gunicorn for production
    app.run(host='0.0.0.0', port=8899, debug=args.debug)
