"""Repository classes for CRUD operations on ORM models."""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from . import models


class LocalSettingRepo:
    """CRUD operations for :class:`models.LocalSetting`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> Optional[str]:
        row = await self.session.get(models.LocalSetting, key)
        return row.value if row is not None else None

    async def set(self, key: str, value: str) -> models.LocalSetting:
        row = await self.session.get(models.LocalSetting, key)
        if row is None:
            row = models.LocalSetting(key=key, value=value)
            self.session.add(row)
        else:
            row.value = value
        await self.session.flush()
        return row

    async def delete(self, key: str) -> None:
        row = await self.session.get(models.LocalSetting, key)
        if row is not None:
            await self.session.delete(row)

    async def all(self) -> Dict[str, str]:
        res = await self.session.execute(select(models.LocalSetting))
        return {row.key: row.value for row in res.scalars().all()}


__all__ = ["LocalSettingRepo"]
