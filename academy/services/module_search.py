# academy/services/module_search.py
"""
In-memory module search.

ModuleSearchIndex is a derived, discardable view over a collection of records;
the cached public index is dropped by signals whenever a module changes.
"""
import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = ("title", "description", "subjects", "series")
PUBLIC_INDEX_CACHE_KEY = "academy:module_index:public"

ALL = "all"
PROGRESS_STATUSES = ("completed", "in_progress", "not_started")


def _field_text(record, field: str) -> str:
    if isinstance(record, dict):
        value = record.get(field)
    else:
        value = getattr(record, field, None)

    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value if item is not None)
    return str(value)


class ModuleSearchIndex:
    """
    Case-insensitive substring search across a fixed set of fields.
    Results keep collection order. An empty or blank query returns every record.
    """

    def __init__(self, records, fields=DEFAULT_FIELDS):
        self.records = list(records)
        self.fields = tuple(fields)
        self._haystacks = [
            [_field_text(record, field).lower() for field in self.fields]
            for record in self.records
        ]

    def __len__(self):
        return len(self.records)

    def search(self, query: str) -> list:
        needle = (query or "").strip().lower()
        if not needle:
            return list(self.records)

        return [
            record
            for record, haystack in zip(self.records, self._haystacks)
            if any(needle in text for text in haystack)
        ]


def _active(value):
    """Filter value, or None when unset or "all"."""
    if not value or value.strip().lower() == ALL:
        return None
    return value.strip().lower()


def _matches_any(values, wanted: str) -> bool:
    if not isinstance(values, (list, tuple)):
        values = [values]
    return any(value and str(value).lower() == wanted for value in values)


def progress_status(progress: int) -> str:
    if progress >= 100:
        return "completed"
    if progress > 0:
        return "in_progress"
    return "not_started"


def filter_modules(modules, subject=None, series=None, status=None, progress_by_module=None) -> list:
    """
    Apply the discovery filters on top of a search result.

    subject and series match case-insensitively; "all" disables a filter.
    status is one of completed / in_progress / not_started, derived from the
    student's progress in progress_by_module (module id -> ModuleProgress).
    Modules without a progress entry count as not_started. Unknown status
    values filter nothing.
    """
    progress_by_module = progress_by_module or {}
    subject, series, status = _active(subject), _active(series), _active(status)
    results = []

    for module in modules:
        if subject and not _matches_any(module.subjects, subject):
            continue
        if series and not _matches_any(module.series, series):
            continue
        if status in PROGRESS_STATUSES:
            entry = progress_by_module.get(module.id)
            if progress_status(entry.progress if entry else 0) != status:
                continue
        results.append(module)

    return results


def build_public_index() -> ModuleSearchIndex:
    from academy.models import Module

    modules = Module.objects.filter(status="Ativo", visibility="public").select_related("creator")
    return ModuleSearchIndex(modules)


def get_public_index() -> ModuleSearchIndex:
    index = cache.get(PUBLIC_INDEX_CACHE_KEY)
    if index is None:
        index = build_public_index()
        cache.set(PUBLIC_INDEX_CACHE_KEY, index, settings.MODULE_INDEX_TTL)
        logger.debug(f"Rebuilt public module index ({len(index)} modules)")
    return index


def invalidate_public_index() -> None:
    cache.delete(PUBLIC_INDEX_CACHE_KEY)
