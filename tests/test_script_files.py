"""
Tests for script file versioning, single-reference deletion and script
deletion.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from src.database import db
from src.models import Activity, Assignment, Feedback, Meeting, Script, ScriptFile, User
from src.services.script_files import (
    add_script_file,
    clear_cover_image,
    clear_profile_photo,
    delete_script,
    delete_script_file,
    latest_files,
    promote_latest_version,
)
from src.services.storage import TransientBackendError

from conftest import make_script, make_script_file, make_user


def _latest_rows(script_id, file_type='SCREENPLAY'):
    return ScriptFile.query.filter_by(script_id=script_id, file_type=file_type, is_latest=True).all()


class TestAddScriptFile:

    def test_versions_increase_and_one_latest(self, app):
        writer = make_user()
        script = make_script(writer, 'Night Shift')

        first = add_script_file(script, 'screenplay', 'v1.pdf', '/api/files/scripts/1_aaaaaa_v1.pdf', 100, writer.id)
        second = add_script_file(script, 'SCREENPLAY', 'v2.pdf', '/api/files/scripts/2_bbbbbb_v2.pdf', 200, writer.id)

        assert (first.version, second.version) == (1, 2)
        assert [f.id for f in _latest_rows(script.id)] == [second.id]
        assert db.session.get(ScriptFile, first.id).is_latest is False

    def test_version_is_max_plus_one_after_gap(self, app):
        writer = make_user()
        script = make_script(writer)
        make_script_file(script, '/api/files/scripts/a.pdf', version=1, is_latest=False)
        make_script_file(script, '/api/files/scripts/c.pdf', version=3, is_latest=True)

        added = add_script_file(script, 'SCREENPLAY', 'd.pdf', '/api/files/scripts/d.pdf', 10, writer.id)

        assert added.version == 4

    def test_types_are_versioned_independently(self, app):
        writer = make_user()
        script = make_script(writer)
        add_script_file(script, 'SCREENPLAY', 's.pdf', '/api/files/scripts/s.pdf', 10, writer.id)
        deck = add_script_file(script, 'PITCHDECK', 'deck.pptx', '/api/files/scripts/deck.pptx', 10, writer.id)

        assert deck.version == 1
        assert set(latest_files(script)) == {'SCREENPLAY', 'PITCHDECK'}

    def test_activity_recorded(self, app):
        writer = make_user()
        script = make_script(writer)
        add_script_file(script, 'TREATMENT', 't.docx', '/api/files/scripts/t.docx', 10, writer.id)

        activity = Activity.query.filter_by(script_id=script.id).one()
        assert activity.type == 'FILE_UPLOADED'
        assert '"t.docx"' in activity.description

    def test_bad_size_leaves_previous_latest_in_place(self, app):
        writer = make_user()
        script = make_script(writer)
        current = make_script_file(script, '/api/files/scripts/v1.pdf')

        with pytest.raises(ValueError):
            add_script_file(script, 'SCREENPLAY', 'v2.pdf', '/api/files/scripts/v2.pdf', 'big', writer.id)
        db.session.commit()

        assert [f.id for f in _latest_rows(script.id)] == [current.id]
        assert ScriptFile.query.count() == 1

    def test_unknown_type_rejected(self, app):
        writer = make_user()
        script = make_script(writer)
        with pytest.raises(ValueError):
            add_script_file(script, 'POSTER', 'p.pdf', '/api/files/scripts/p.pdf', 10, writer.id)
        assert ScriptFile.query.count() == 0


class TestDeleteScriptFile:

    def test_deleting_latest_promotes_previous(self, app):
        writer = make_user()
        script = make_script(writer)
        v1 = make_script_file(script, '/api/files/scripts/1_aaaaaa_v1.pdf', version=1, is_latest=False)
        v2 = make_script_file(script, '/api/files/scripts/2_bbbbbb_v2.pdf', version=2, is_latest=True)
        storage = MagicMock()
        storage.extract_key.return_value = 'scripts/2_bbbbbb_v2.pdf'

        deleted = delete_script_file(v2.id, storage, deleted_by=writer.id)

        assert deleted['version'] == 2
        storage.delete.assert_called_once_with('scripts/2_bbbbbb_v2.pdf')
        assert [f.id for f in _latest_rows(script.id)] == [v1.id]
        assert Activity.query.filter_by(type='FILE_DELETED').count() == 1

    def test_deleting_older_version_leaves_latest(self, app):
        writer = make_user()
        script = make_script(writer)
        v1 = make_script_file(script, '/api/files/scripts/v1.pdf', version=1, is_latest=False)
        v2 = make_script_file(script, '/api/files/scripts/v2.pdf', version=2, is_latest=True)

        delete_script_file(v1.id, MagicMock())

        assert [f.id for f in _latest_rows(script.id)] == [v2.id]

    def test_deleting_only_version(self, app):
        writer = make_user()
        script = make_script(writer)
        only = make_script_file(script, '/api/files/scripts/only.pdf')

        delete_script_file(only.id, MagicMock())

        assert ScriptFile.query.count() == 0
        assert promote_latest_version(script.id, 'SCREENPLAY') is None

    def test_storage_failure_still_removes_row(self, app):
        writer = make_user()
        script = make_script(writer)
        only = make_script_file(script, '/api/files/scripts/only.pdf')
        storage = MagicMock()
        storage.extract_key.return_value = 'scripts/only.pdf'
        storage.delete.side_effect = TransientBackendError('connection reset', backend='s3')

        assert delete_script_file(only.id, storage) is not None
        assert db.session.get(ScriptFile, only.id) is None

    def test_unparseable_url_skips_storage(self, app):
        writer = make_user()
        script = make_script(writer)
        odd = make_script_file(script, 'https://example.com/elsewhere.pdf')
        storage = MagicMock()
        storage.extract_key.return_value = None

        delete_script_file(odd.id, storage)

        storage.delete.assert_not_called()
        assert db.session.get(ScriptFile, odd.id) is None

    def test_missing_row(self, app):
        assert delete_script_file(999, MagicMock()) is None


class TestClearFields:

    def test_clear_cover_image(self, app):
        writer = make_user()
        script = make_script(writer, cover_image_url='/api/files/covers/1_aaaaaa_c.png')
        storage = MagicMock()
        storage.extract_key.return_value = 'covers/1_aaaaaa_c.png'

        assert clear_cover_image(script.id, storage) is not None
        assert db.session.get(Script, script.id).cover_image_url is None
        storage.delete.assert_called_once_with('covers/1_aaaaaa_c.png')
        # Already cleared
        assert clear_cover_image(script.id, storage) is None

    def test_clear_profile_photo(self, app):
        user = make_user(photo_url='/api/files/profiles/1_aaaaaa_me.jpg')

        assert clear_profile_photo(user.id, MagicMock()) is not None
        assert db.session.get(User, user.id).photo_url is None
        assert clear_profile_photo(12345, MagicMock()) is None


class TestDeleteScript:

    def test_cascades_to_dependent_rows(self, app):
        writer = make_user()
        reader = make_user('reader@example.com', role='READER')
        script = make_script(writer, cover_image_url='/api/files/covers/c.png')
        make_script_file(script, '/api/files/scripts/v1.pdf')
        db.session.add_all([
            Assignment(script_id=script.id, assigned_to=reader.id),
            Feedback(script_id=script.id, user_id=reader.id, rating=4, comments='Tight second act'),
            Activity(script_id=script.id, user_id=writer.id, type='SUBMITTED', description='Submitted'),
            Meeting(script_id=script.id, title='Notes call', scheduled_at=datetime(2024, 5, 1, 10, 0)),
        ])
        db.session.commit()

        assert delete_script(script.id) is True

        assert db.session.get(Script, script.id) is None
        for model in (ScriptFile, Assignment, Feedback, Activity, Meeting):
            assert model.query.count() == 0
        assert db.session.get(User, writer.id) is not None

    def test_missing_script(self, app):
        assert delete_script(42) is False
