# academy/services/__init__.py
"""Academy Services Package"""

from .catalog import AchievementCatalog
from .gamification import GamificationResult, GamificationService
from .module_search import ModuleSearchIndex

__all__ = ['AchievementCatalog', 'GamificationResult', 'GamificationService', 'ModuleSearchIndex']
