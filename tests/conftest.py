"""
Shared fixtures. The environment is set before anything under src/ is
imported because configuration is read at import time.
"""

import os
import sys
import shutil
import tempfile
import threading

import pytest

TEST_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(TEST_DIR)
sys.path.insert(0, PROJECT_ROOT)

_TMP_ROOT = tempfile.mkdtemp(prefix='scriptrack-tests-')

os.environ['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
os.environ['PERSISTENT_UPLOAD_DIR'] = os.path.join(_TMP_ROOT, 'persistent-uploads')
os.environ['LEGACY_UPLOAD_DIR'] = os.path.join(_TMP_ROOT, 'uploads-backup')
os.environ['ENABLE_INTEGRITY_MONITOR'] = 'false'
os.environ['INTEGRITY_STRICT_MODE'] = 'false'
# Empty values count as unset, and keep a developer's .env from selecting S3
for _var in ('AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'AWS_SESSION_TOKEN', 'AWS_S3_BUCKET',
             'S3_ENDPOINT_URL', 'CDN_BASE_URL'):
    os.environ[_var] = ''

from src.app import app as flask_app  # noqa: E402
from src.database import db  # noqa: E402
from src.models import Script, ScriptFile, User  # noqa: E402
from src.services.storage import (  # noqa: E402
    StorageService,
    StorageSettings,
    reset_storage_service_singleton,
    set_storage_service,
)
from src.services.storage.keys import classify_url, extract_key  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TMP_ROOT, ignore_errors=True)


@pytest.fixture
def app():
    flask_app.config['TESTING'] = True
    flask_app.config['WTF_CSRF_ENABLED'] = False
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage_settings(tmp_path):
    return StorageSettings(
        local_root=str(tmp_path / 'persistent-uploads'),
        legacy_local_root=str(tmp_path / 'uploads-backup'),
    )


@pytest.fixture
def storage(storage_settings):
    service = StorageService(storage_settings)
    set_storage_service(service)
    yield service
    reset_storage_service_singleton()


def make_user(email='writer@example.com', role='WRITER', name=None, photo_url=None):
    user = User(email=email, role=role, name=name, photo_url=photo_url)
    db.session.add(user)
    db.session.commit()
    return user


def make_script(submitter, title='Untitled', cover_image_url=None):
    script = Script(title=title, submitted_by=submitter.id, cover_image_url=cover_image_url)
    db.session.add(script)
    db.session.commit()
    return script


def make_script_file(script, url, file_type='SCREENPLAY', version=1, is_latest=True, file_name='draft.pdf'):
    script_file = ScriptFile(
        script_id=script.id,
        file_type=file_type,
        file_name=file_name,
        file_url=url,
        file_size=1024,
        version=version,
        is_latest=is_latest,
        uploaded_by=script.submitted_by,
    )
    db.session.add(script_file)
    db.session.commit()
    return script_file


def login(client, user):
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user.id)
        sess['_fresh'] = True


class FakeStorage:
    """Storage stand-in that answers existence checks from a dict.

    Keys not in ``answers`` get ``default``. Checked keys are recorded.
    """

    def __init__(self, answers=None, default=True):
        self.answers = dict(answers or {})
        self.default = default
        self.checked = []
        self._lock = threading.Lock()

    def extract_key(self, url):
        return extract_key(url)

    def classify_url(self, url):
        return classify_url(url)

    def exists(self, key):
        with self._lock:
            self.checked.append(key)
        return self.answers.get(key, self.default)
