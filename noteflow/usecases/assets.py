from __future__ import annotations

import logging
from typing import Iterable, List

from noteflow.core.exceptions import DomainError, ValidationError
from noteflow.gateway import RemoteGateway


class AssetLibrary:
    """The backend-managed image library; re-listed after every change."""

    def __init__(self, gateway: RemoteGateway) -> None:
        self.gateway = gateway
        self.images: List[str] = []
        self.loading = False
        self.logger = logging.getLogger(__name__)

    async def list(self) -> List[str]:
        self.loading = True
        try:
            self.images = await self.gateway.list_local_images()
        except DomainError as exc:
            self.logger.warning("asset listing failed: %s", exc, extra={"operation": "list_local_images"})
        finally:
            self.loading = False
        return list(self.images)

    async def import_images(self, paths: Iterable[str]) -> List[str]:
        paths = [p for p in paths if p]
        if not paths:
            raise ValidationError("no_images_selected")
        await self.gateway.import_local_images(paths)
        return await self.list()

    async def delete(self, path: str) -> List[str]:
        await self.gateway.delete_local_image(path)
        return await self.list()


__all__ = ["AssetLibrary"]
