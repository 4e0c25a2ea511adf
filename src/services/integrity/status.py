"""
Storage configuration and URL distribution report.
"""

from .catalog import CATEGORIES, SCRIPT_FILES, ReferenceCatalog

_SHAPES = ('local', 's3', 'cdn', 'unknown')


def storage_status(storage, catalog=None):
    """
    Describe the storage setup and where the stored references point.

    Only reports whether credentials are present, never their values.

    Returns:
        Dictionary with configuration flags, the active backend, per-category
        URL shape counts and warnings
    """
    catalog = catalog or ReferenceCatalog()
    settings = storage.settings

    configuration = {
        'durable_configured': settings.durable_configured,
        'aws_access_key_id_set': bool(settings.s3_access_key_id),
        'aws_secret_access_key_set': bool(settings.s3_secret_access_key),
        'aws_s3_bucket_set': bool(settings.s3_bucket_name),
        'aws_region': settings.s3_region,
        'cdn_base_url_set': bool(settings.cdn_base_url),
        'local_root': settings.local_root,
        'legacy_local_root': settings.legacy_local_root,
    }

    references = catalog.all_references()
    distribution = {}
    totals = dict.fromkeys(_SHAPES, 0)
    total_script_file_bytes = 0
    for category in CATEGORIES:
        counts = dict.fromkeys(_SHAPES, 0)
        for ref in references.get(category, []):
            shape = storage.classify_url(ref.url)
            counts[shape] += 1
            totals[shape] += 1
            if category == SCRIPT_FILES:
                total_script_file_bytes += int(ref.extra.get('file_size') or 0)
        distribution[category] = counts

    warnings = []
    if not settings.durable_configured:
        warnings.append('Durable storage is not configured; files are kept on the local filesystem only')
        if totals['local']:
            warnings.append(f"{totals['local']} references point at local storage and depend on the persistent mount")
    elif totals['local']:
        warnings.append(f"{totals['local']} references still point at local storage")
    if totals['unknown']:
        warnings.append(f"{totals['unknown']} references use an unrecognized URL format")

    return {
        'backend': storage.backend_kind,
        'configuration': configuration,
        'distribution': distribution,
        'totals': totals,
        'total_script_file_mb': round(total_script_file_bytes / (1024 * 1024), 2),
        'warnings': warnings,
    }
