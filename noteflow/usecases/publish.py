from __future__ import annotations

import logging

from noteflow.core.exceptions import NotAuthenticatedError, ValidationError
from noteflow.gateway import RemoteGateway
from noteflow.state import DraftModel, Preferences, SessionManager


class PublishPost:
    """Hand the current post to the backend's browser automation for the current account."""

    def __init__(
        self,
        gateway: RemoteGateway,
        session: SessionManager,
        drafts: DraftModel,
        preferences: Preferences | None = None,
    ) -> None:
        self.gateway = gateway
        self.session = session
        self.drafts = drafts
        self.preferences = preferences
        self.publishing = False
        self.logger = logging.getLogger(__name__)

    async def __call__(self) -> None:
        user = self.session.current_user
        if user is None:
            raise NotAuthenticatedError("login_required")
        post = self.drafts.current_post
        if not post.title or not post.content:
            raise ValidationError("title_and_content_required")

        self.publishing = True
        try:
            await self.gateway.publish_post(
                phone=user.phone,
                title=post.title,
                content=post.content,
                images=list(post.images),
                cover_image=post.cover_image,
            )
        finally:
            self.publishing = False
        self.logger.info(
            "publish started",
            extra={
                "user_id": user.id,
                "post_id": post.id,
                "images": len(post.images),
                "headless": self.preferences.headless_mode if self.preferences else None,
            },
        )


__all__ = ["PublishPost"]
