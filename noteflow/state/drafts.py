"""The in-progress composition and the current user's saved drafts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Literal, Optional, Set, Union

from noteflow.core.exceptions import DomainError, NotAuthenticatedError
from noteflow.core.models import Post, User
from noteflow.gateway import RemoteGateway
from .events import EventBus
from .session import SessionManager

MAX_IMAGES = 9


class DraftModel:
    """Owns ``current_post`` and the draft collection scoped to the session user.

    The current post is independent of the collection until it is saved;
    after that its ``id`` aliases a draft.
    """

    CURRENT_TOPIC = "drafts.current_post"
    COLLECTION_TOPIC = "drafts.collection"

    def __init__(self, gateway: RemoteGateway, bus: EventBus, session: SessionManager) -> None:
        self.gateway = gateway
        self.bus = bus
        self.session = session
        self.logger = logging.getLogger(__name__)
        self._current = Post()
        self._drafts: List[Post] = []
        self._owner_id: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self.saving = False
        self._unsubscribe = bus.subscribe(SessionManager.CURRENT_TOPIC, self._on_identity_change)

    # ------------------------------------------------------------------
    @property
    def current_post(self) -> Post:
        return self._current.model_copy(deep=True)

    @property
    def drafts(self) -> List[Post]:
        return [d.model_copy(deep=True) for d in self._drafts]

    @property
    def owner_id(self) -> Optional[int]:
        return self._owner_id

    @property
    def is_orphaned(self) -> bool:
        """True when the current post aliases a draft that is no longer listed."""

        post_id = self._current.id
        if post_id is None:
            return False
        return all(d.id != post_id for d in self._drafts)

    # ------------------------------------------------------------------
    # local edits; no remote call
    def set_current_post(self, **fields: Any) -> Post:
        merged = {**self._current.model_dump(), **fields}
        self._current = Post.model_validate(merged)
        self.bus.publish(self.CURRENT_TOPIC, self.current_post)
        return self.current_post

    def new_post(self) -> Post:
        self._current = Post()
        self.bus.publish(self.CURRENT_TOPIC, self.current_post)
        return self.current_post

    def load_draft(self, draft: Post) -> Post:
        return self.set_current_post(
            id=draft.id,
            title=draft.title,
            content=draft.content,
            images=list(draft.images),
            cover_image=draft.cover_image,
        )

    def add_images(self, paths: Iterable[str]) -> List[str]:
        images = list(self._current.images)
        for path in paths:
            if len(images) >= MAX_IMAGES:
                break
            images.append(path)
        self.set_current_post(images=images)
        return images

    def set_cover(self, path: Optional[str]) -> None:
        self.set_current_post(cover_image=path)

    def remove_image(self, which: Union[int, str]) -> Optional[str]:
        """Drop one image; if it was the cover, the cover is cleared too."""

        images = list(self._current.images)
        if isinstance(which, int):
            if not 0 <= which < len(images):
                return None
            removed = images.pop(which)
        else:
            if which not in images:
                return None
            images.remove(which)
            removed = which
        update: dict = {"images": images}
        if self._current.cover_image == removed:
            update["cover_image"] = None
        self.set_current_post(**update)
        return removed

    def append_tag(self, tag: str, target: Literal["title", "content"] = "content") -> None:
        text = getattr(self._current, target) or ""
        self.set_current_post(**{target: f"{text.strip()} #{tag} "})

    # ------------------------------------------------------------------
    # remote round-trips
    def _require_user(self) -> User:
        user = self.session.current_user
        if user is None:
            raise NotAuthenticatedError("login_required")
        return user

    async def save_draft(self) -> int:
        user = self._require_user()
        post = self._current
        self.saving = True
        try:
            post_id = await self.gateway.save_post(
                user_id=user.id,
                title=post.title,
                content=post.content,
                images=list(post.images),
                cover_image=post.cover_image,
                post_id=post.id,
            )
        finally:
            self.saving = False
        # only the id is merged; edits made while saving are kept
        self.set_current_post(id=post_id)
        await self.fetch_drafts()
        return post_id

    async def fetch_drafts(self) -> bool:
        """Replace the collection with the current user's drafts; no-op without a user."""

        user = self.session.current_user
        if user is None:
            return False
        try:
            posts = await self.gateway.get_posts(user.id)
        except DomainError as exc:
            self.logger.warning(
                "draft refresh failed: %s", exc, extra={"operation": "get_posts", "user_id": user.id}
            )
            return False
        current = self.session.current_user
        if current is None or current.id != user.id:
            # identity changed while the request was in flight
            return False
        self._drafts = posts
        self._owner_id = user.id
        self.bus.publish(self.COLLECTION_TOPIC, self.drafts)
        return True

    async def delete_draft(self, post_id: int) -> None:
        await self.gateway.delete_post(post_id)
        if self._current.id == post_id:
            self.logger.warning(
                "current post aliases a deleted draft", extra={"post_id": post_id}
            )
        await self.fetch_drafts()

    # ------------------------------------------------------------------
    def _on_identity_change(self, topic: str, user: Optional[User]) -> None:
        if user is None:
            return
        if self._owner_id is not None and user.id != self._owner_id:
            # another user's drafts must not stay visible, even if the fetch fails
            self._drafts = []
            self._owner_id = None
            self.bus.publish(self.COLLECTION_TOPIC, self.drafts)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.fetch_drafts())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()


__all__ = ["DraftModel", "MAX_IMAGES"]
