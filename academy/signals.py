import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Achievement, Module
from .services.catalog import AchievementCatalog
from .services.module_search import invalidate_public_index

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Achievement)
@receiver(post_delete, sender=Achievement)
def drop_achievement_catalog(sender, instance, **kwargs):
    """Catalog changed: next load reads the table again."""
    AchievementCatalog().invalidate()
    logger.debug(f"Achievement catalog invalidated ({instance.pk})")


@receiver(post_save, sender=Module)
@receiver(post_delete, sender=Module)
def drop_module_index(sender, instance, **kwargs):
    invalidate_public_index()
