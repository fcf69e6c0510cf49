"""Reflection generation for diary entries."""

import logging
from typing import Mapping, Optional

from .models import Number

logger = logging.getLogger(__name__)


class ReflectionGenerator:
    """Produces a short reflection from a day's diary text and goal progress."""

    async def generate(
        self, content: str, progress: Mapping[str, Number]
    ) -> Optional[str]:
        """
        Generate a reflection.

        Args:
            content: Diary text for the day
            progress: Cumulative progress per goal id

        Returns:
            Reflection text, or None if nothing was produced
        """
        raise NotImplementedError


class DisabledReflectionGenerator(ReflectionGenerator):
    """Offline generator: makes no network call and never returns text."""

    async def generate(
        self, content: str, progress: Mapping[str, Number]
    ) -> Optional[str]:
        logger.info("Offline mode: AI reflection is disabled")
        return None
