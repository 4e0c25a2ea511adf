"""Storage key generation and key extraction from stored URLs.

Keys look like ``<namespace>/<millis>_<suffix>_<sanitized-name>``. URLs that
were written to the database by any storage layout the app has ever used must
keep resolving to their key, so extraction is a table of URL shapes tried in
order. Nothing here touches the network or the filesystem.
"""

from __future__ import annotations

import mimetypes
import os
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit
from uuid import uuid4

from .exceptions import UnparseableReferenceError

SCRIPT_FILE_CATEGORIES = ('screenplay', 'pitchdeck', 'treatment', 'oneline_order', 'storyboard', 'team_profile')
IMAGE_CATEGORIES = ('cover', 'profile')

LOCAL_API_PREFIX = '/api/files/'

_CATEGORY_NAMESPACES = {
    'cover': 'covers',
    'profile': 'profiles',
}
_DEFAULT_NAMESPACE = 'files'
_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9.-]')


def _normalize_key(key: str) -> str:
    key = (key or '').replace('\\', '/').strip()
    while '//' in key:
        key = key.replace('//', '/')
    return key.lstrip('/')


def namespace_for_category(category: Optional[str]) -> str:
    category = (category or '').strip().lower()
    if category in _CATEGORY_NAMESPACES:
        return _CATEGORY_NAMESPACES[category]
    if category in SCRIPT_FILE_CATEGORIES or category == 'script':
        return 'scripts'
    return _DEFAULT_NAMESPACE


def sanitize_file_name(original_name: Optional[str]) -> str:
    base_name = (original_name or '').replace('\\', '/').rsplit('/', 1)[-1].strip()
    safe_name = _UNSAFE_NAME_CHARS.sub('_', base_name)
    if not safe_name.strip('._'):
        return 'file'
    return safe_name


def derive_key(original_name: Optional[str], namespace: str = _DEFAULT_NAMESPACE, *,
               now: Optional[datetime] = None) -> str:
    """Build a fresh storage key for an upload.

    Millisecond timestamp plus a random suffix keeps keys unique without any
    shared counter, so concurrent uploads of the same file name never collide.
    """
    millis = int(now.timestamp() * 1000) if now is not None else int(time.time() * 1000)
    suffix = uuid4().hex[:6]
    namespace = _normalize_key(namespace).strip('/') or _DEFAULT_NAMESPACE
    return f"{namespace}/{millis}_{suffix}_{sanitize_file_name(original_name)}"


def local_api_url(key: str) -> str:
    return f"{LOCAL_API_PREFIX}{quote(_normalize_key(key), safe='/')}"


def _clean_key(raw: str) -> Optional[str]:
    key = _normalize_key(unquote(raw or ''))
    if not key:
        return None
    if any(segment in ('.', '..') for segment in key.split('/')):
        return None
    return key


def _group_key(match: re.Match) -> Optional[str]:
    return _clean_key(match.group('key'))


# (shape name, pattern, extractor), tried in order. Never remove an entry:
# rows written years ago still carry these URLs.
_URL_SHAPES: List[Tuple[str, re.Pattern, Callable[[re.Match], Optional[str]]]] = [
    # https://s3.us-east-1.amazonaws.com/<bucket>/<key>
    ('s3', re.compile(r'^https?://s3(?:[.-][a-z0-9-]+)?\.amazonaws\.com(?:\.cn)?/(?P<bucket>[^/]+)/(?P<key>.+)$',
                      re.IGNORECASE), _group_key),
    # https://<bucket>.s3.us-east-1.amazonaws.com/<key>, https://<bucket>.s3.amazonaws.com/<key>
    ('s3', re.compile(r'^https?://(?P<bucket>[^/]+)\.s3(?:[.-][a-z0-9-]+)?\.amazonaws\.com(?:\.cn)?/(?P<key>.+)$',
                      re.IGNORECASE), _group_key),
    # https://d1234.cloudfront.net/<key>
    ('cdn', re.compile(r'^https?://[^/]+\.cloudfront\.net/(?P<key>.+)$', re.IGNORECASE), _group_key),
    # /api/files/<key>, /api/files/uploads/<key>, https://host/api/files/<key>
    ('local', re.compile(r'^(?:https?://[^/]+)?/api/files/(?:uploads/)?(?P<key>.+)$', re.IGNORECASE), _group_key),
    # /uploads/<key> (first local layout)
    ('local', re.compile(r'^(?:https?://[^/]+)?/uploads/(?P<key>.+)$', re.IGNORECASE), _group_key),
]


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme or parts.netloc:
        return f"{parts.scheme}://{parts.netloc}{parts.path}" if parts.netloc else parts.path
    return parts.path


def _match_shape(url: Optional[str], extra_bases: Iterable[str]) -> Tuple[str, Optional[str]]:
    if url is None:
        return 'unknown', None
    raw = str(url).strip()
    if not raw:
        return 'unknown', None
    value = _strip_query(raw)

    for entry in extra_bases or ():
        shape, base = entry if isinstance(entry, tuple) else ('cdn', entry)
        if not base:
            continue
        prefix = base.rstrip('/') + '/'
        if value.startswith(prefix):
            return shape, _clean_key(value[len(prefix):])

    for shape, pattern, extractor in _URL_SHAPES:
        match = pattern.match(value)
        if match:
            return shape, extractor(match)
    return 'unknown', None


def extract_key(url: Optional[str], extra_bases: Iterable[str] = ()) -> Optional[str]:
    """Return the storage key a stored URL points at, or None.

    None means the URL cannot be verified. It must never be read as "the
    file is missing".
    """
    return _match_shape(url, extra_bases)[1]


def classify_url(url: Optional[str], extra_bases: Iterable[str] = ()) -> str:
    """Name the storage layout a URL belongs to: cdn, s3, local or unknown."""
    shape, key = _match_shape(url, extra_bases)
    return shape if key else 'unknown'


def require_key(url: Optional[str], extra_bases: Iterable[str] = ()) -> str:
    key = extract_key(url, extra_bases)
    if key is None:
        raise UnparseableReferenceError(f"Cannot derive a storage key from '{url}'", url=url)
    return key


def local_path_from_key(local_root: str, key: str) -> str:
    """Resolve a storage key under local_root and prevent path traversal."""
    safe_key = _normalize_key(key)
    root = Path(local_root).resolve()
    candidate = (root / Path(*safe_key.split('/'))).resolve()
    try:
        candidate.relative_to(root)
    except ValueError as exc:
        raise ValueError(f"Local storage key resolves outside root: {key}") from exc
    return str(candidate)


def guess_content_type(key: str) -> Optional[str]:
    return mimetypes.guess_type(os.path.basename(key))[0]
