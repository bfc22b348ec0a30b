from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from noteflow.core.exceptions import DomainError
from noteflow.core.models import TrendData, TrendItem
from noteflow.gateway import RemoteGateway
from .events import EventBus

OK_CODE = 200


class TrendsCache:
    """Last good trend aggregation, keyed by source platform."""

    TOPIC = "trends"

    def __init__(self, gateway: RemoteGateway, bus: EventBus) -> None:
        self.gateway = gateway
        self.bus = bus
        self.logger = logging.getLogger(__name__)
        self.data: TrendData = {}
        self.loading = False

    def sources(self) -> List[str]:
        return list(self.data)

    def items(self, source: str) -> List[TrendItem]:
        return list(self.data.get(source, []))

    async def fetch(self) -> bool:
        self.loading = True
        try:
            reply = await self.gateway.get_trends()
            if reply.get("code") != OK_CODE:
                self.logger.warning(
                    "trends fetch rejected", extra={"operation": "get_trends", "code": reply.get("code")}
                )
                return False
            self.data = _parse(reply.get("data") or {})
        except DomainError as exc:
            self.logger.warning("trends fetch failed: %s", exc, extra={"operation": "get_trends"})
            return False
        except PydanticValidationError as exc:
            self.logger.warning("malformed trends payload: %s", exc, extra={"operation": "get_trends"})
            return False
        finally:
            self.loading = False
        self.bus.publish(self.TOPIC, self.data)
        return True


def _parse(raw: Dict[str, Any]) -> TrendData:
    return {
        str(source): [TrendItem.model_validate(item) for item in items or []]
        for source, items in raw.items()
    }


__all__ = ["TrendsCache"]
