"""Route modules for the Punchline API."""

from . import jokes
from . import ratings
from . import categories
from . import health
from . import ai_jokes

__all__ = ['jokes', 'ratings', 'categories', 'health', 'ai_jokes']
