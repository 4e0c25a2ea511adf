"""
Tests for the reference catalog and the integrity scanner.
"""

import json
import threading

from src.database import db
from src.models import ScriptFile
from src.services.integrity import (
    COVER_IMAGES,
    PROFILE_PHOTOS,
    SCRIPT_FILES,
    IntegrityScanner,
    ReferenceCatalog,
)

from conftest import FakeStorage, make_script, make_script_file, make_user


def _seed():
    writer = make_user('writer@example.com', name='Wendy Writer', photo_url='/api/files/profiles/1_aaaaaa_me.jpg')
    make_user('reader@example.com')
    script = make_script(writer, 'Night Shift', cover_image_url='/api/files/covers/1_bbbbbb_cover.png')
    v1 = make_script_file(script, '/api/files/scripts/1_cccccc_v1.pdf', version=1, is_latest=False)
    v2 = make_script_file(script, '/api/files/scripts/2_dddddd_v2.pdf', version=2, is_latest=True)
    return writer, script, v1, v2


class TestReferenceCatalog:

    def test_enumerates_non_null_references(self, app):
        writer, script, v1, v2 = _seed()
        refs = ReferenceCatalog().all_references()

        assert [r.reference_id for r in refs[SCRIPT_FILES]] == [v1.id, v2.id]
        assert refs[SCRIPT_FILES][1].extra['version'] == 2
        assert refs[SCRIPT_FILES][0].owner_label == 'Night Shift'
        assert [r.reference_id for r in refs[COVER_IMAGES]] == [script.id]
        assert [r.reference_id for r in refs[PROFILE_PHOTOS]] == [writer.id]
        assert refs[PROFILE_PHOTOS][0].owner_label == 'Wendy Writer'

    def test_still_referenced(self, app):
        writer, script, v1, v2 = _seed()
        catalog = ReferenceCatalog()
        cover = catalog.cover_images()[0]
        assert catalog.still_referenced(cover) is True

        script.cover_image_url = '/api/files/covers/9_eeeeee_new.png'
        db.session.commit()
        assert catalog.still_referenced(cover) is False


class TestIntegrityScanner:

    def test_all_valid(self, app):
        _seed()
        report = IntegrityScanner(FakeStorage()).scan()

        assert report.status == 'healthy'
        assert report.summary() == {'total_files': 4, 'valid_files': 4, 'broken_files': 0, 'success_rate': 100}
        assert report.recommendations()[0].startswith('File system is healthy')

    def test_empty_database(self, app):
        report = IntegrityScanner(FakeStorage()).scan()
        assert report.total_files == 0
        assert report.success_rate == 100
        assert report.status == 'healthy'

    def test_missing_object_is_broken(self, app):
        writer, script, v1, v2 = _seed()
        storage = FakeStorage({'scripts/2_dddddd_v2.pdf': False, 'covers/1_bbbbbb_cover.png': False})
        report = IntegrityScanner(storage, max_workers=2).scan()

        assert report.status == 'issues_found'
        assert report.broken_files == 2
        assert report.success_rate == 50
        broken = report.categories[SCRIPT_FILES].issues
        assert [b.reference_id for b in broken] == [v2.id]
        assert broken[0].reason == 'missing'
        assert broken[0].key == 'scripts/2_dddddd_v2.pdf'
        assert broken[0].extra['file_name'] == 'draft.pdf'
        recs = report.recommendations()
        assert 'Found 2 broken file references that should be cleaned up' in recs
        assert '1 script files are missing and should be re-uploaded or removed from database' in recs
        assert '1 cover images are missing and should be re-uploaded or references cleared' in recs

    def test_unknown_existence_stays_valid(self, app):
        _seed()
        storage = FakeStorage({'profiles/1_aaaaaa_me.jpg': None})
        report = IntegrityScanner(storage).scan()
        assert report.broken_files == 0
        assert report.categories[PROFILE_PHOTOS].valid == 1

    def test_backend_exception_stays_valid(self, app):
        _seed()

        class ExplodingStorage(FakeStorage):
            def exists(self, key):
                raise RuntimeError('socket closed')

        report = IntegrityScanner(ExplodingStorage()).scan()
        assert report.broken_files == 0
        assert report.valid_files == 4

    def test_unparseable_url_valid_unless_strict(self, app):
        writer = make_user('w@example.com', photo_url='https://gravatar.example.com/avatar/abc')
        make_script(writer, 'Loose Ends')

        report = IntegrityScanner(FakeStorage(default=False)).scan()
        section = report.categories[PROFILE_PHOTOS]
        assert (section.total, section.valid, section.broken, section.unverifiable) == (1, 1, 0, 1)

        strict = IntegrityScanner(FakeStorage(default=False), strict=True).scan()
        section = strict.categories[PROFILE_PHOTOS]
        assert (section.total, section.valid, section.broken) == (1, 0, 1)
        assert section.issues[0].reason == 'unparseable'
        assert section.issues[0].key is None

    def test_two_scans_serialize_identically(self, app):
        _seed()
        storage = FakeStorage({'scripts/1_cccccc_v1.pdf': False}, default=True)
        first = IntegrityScanner(storage, max_workers=4).scan().to_dict()
        second = IntegrityScanner(storage, max_workers=1).scan().to_dict()
        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)
        assert 'timestamp' not in first

    def test_reference_deleted_mid_scan_is_dropped(self, app):
        writer, script, v1, v2 = _seed()

        class RacingCatalog(ReferenceCatalog):
            def all_references(self):
                refs = super().all_references()
                # Deleted after enumeration, before the existence checks
                db.session.delete(db.session.get(ScriptFile, v1.id))
                db.session.commit()
                return refs

        storage = FakeStorage({'scripts/1_cccccc_v1.pdf': False})
        report = IntegrityScanner(storage, catalog=RacingCatalog()).scan()

        assert report.broken_files == 0
        assert report.categories[SCRIPT_FILES].total == 1

    def test_cancelled_scan_is_flagged(self, app):
        _seed()
        cancel = threading.Event()
        cancel.set()
        storage = FakeStorage()
        report = IntegrityScanner(storage).scan(cancel_event=cancel)

        assert report.aborted is True
        assert report.total_files == 0
        assert storage.checked == []
        assert report.to_dict()['aborted'] is True
