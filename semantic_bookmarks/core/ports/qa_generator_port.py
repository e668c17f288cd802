"""Q&A Generator Port Interface."""

import asyncio
from abc import ABC, abstractmethod

from ..domain import QAPair


class QAGeneratorPort(ABC):
    """Abstract interface for generating Q&A pairs from page content."""

    @abstractmethod
    async def generate_qa_pairs(
        self,
        content: str,
        cancel_event: asyncio.Event | None = None,
    ) -> list[QAPair]:
        """Generate question/answer pairs describing ``content``."""
        ...
