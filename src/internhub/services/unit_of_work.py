"""Transaction and pagination helpers shared by the lifecycle services."""

from __future__ import annotations

import math
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or roll all of it back.

    Usage:
        async with unit_of_work(session):
            await dispute_repo.close(...)
            await contract_repo.update_status(...)
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


@dataclass(frozen=True)
class PageQuery:
    """A clamped page request.

    page < 1 becomes 1, page_size < 1 becomes the default, and page_size is
    capped at max_size.
    """

    page: int = 1
    page_size: int = 10

    @classmethod
    def clamp(
        cls,
        page: int | None,
        page_size: int | None,
        default_size: int = 10,
        max_size: int = 50,
    ) -> PageQuery:
        safe_page = page if page and page >= 1 else 1
        safe_size = page_size if page_size and page_size >= 1 else default_size
        return cls(page=safe_page, page_size=min(safe_size, max_size))

    @classmethod
    def from_query(
        cls,
        page: str | None,
        page_size: str | None,
        default_size: int = 10,
        max_size: int = 50,
    ) -> PageQuery:
        """Clamp raw query-string values; unparseable values fall back to defaults."""
        return cls.clamp(_leading_int(page), _leading_int(page_size), default_size, max_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size) or 1


def _leading_int(raw: str | None) -> int | None:
    """Parse the leading integer of a query value ("12abc" -> 12, "abc" -> None)."""
    match = _LEADING_INT.match(raw or "")
    return int(match.group(1)) if match else None
