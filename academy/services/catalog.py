# academy/services/catalog.py
"""Achievement catalog loader backed by Django's cache."""
import logging

from django.conf import settings
from django.core.cache import cache as default_cache
from django.db import DatabaseError

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "academy:achievement_catalog"


class AchievementCatalog:
    """
    Lists active achievement definitions.

    The list is cached for ACHIEVEMENT_CATALOG_TTL seconds and dropped by the
    Achievement post_save/post_delete signals. If the table cannot be read the
    catalog is treated as empty so evaluation yields no unlocks.
    """

    def __init__(self, cache=None, ttl=None):
        self.cache = cache or default_cache
        self.ttl = settings.ACHIEVEMENT_CATALOG_TTL if ttl is None else ttl

    def load(self) -> list:
        definitions = self.cache.get(CATALOG_CACHE_KEY)
        if definitions is not None:
            return definitions

        try:
            definitions = self.fetch()
        except DatabaseError as e:
            logger.error(f"Achievement catalog unavailable: {e}")
            return []

        self.cache.set(CATALOG_CACHE_KEY, definitions, self.ttl)
        return definitions

    def fetch(self) -> list:
        from academy.models import Achievement

        return list(Achievement.objects.filter(status="Ativa").order_by("sort_order", "created_at", "id"))

    def invalidate(self) -> None:
        self.cache.delete(CATALOG_CACHE_KEY)
