import asyncio

import pytest

from noteflow.core.exceptions import NotAuthenticatedError, RemoteError
from noteflow.core.models import Post, User
from noteflow.state import MAX_IMAGES, DraftModel, SessionManager

ALICE = {"id": 1, "nickname": "alice", "phone": "111"}
BOB = {"id": 2, "nickname": "bob", "phone": "222"}


def _wire(gateway, bus):
    gateway.users = [dict(ALICE), dict(BOB)]
    session = SessionManager(gateway, bus)
    return session, DraftModel(gateway, bus, session)


async def _login(session, drafts, user) -> None:
    await session.switch(User(**user))
    await drafts.wait_idle()


def test_saved_draft_id_appears_in_refetched_collection(gateway, bus) -> None:
    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        drafts.set_current_post(title="Weekend", content="Hiking trip")
        post_id = await drafts.save_draft()
        return drafts, post_id

    drafts, post_id = asyncio.run(scenario())

    assert drafts.current_post.id == post_id
    assert post_id in [d.id for d in drafts.drafts]
    assert gateway.calls_to("save_post")[0]["post_id"] is None
    assert drafts.saving is False


def test_second_save_updates_same_draft(gateway, bus) -> None:
    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        drafts.set_current_post(title="v1", content="c")
        first = await drafts.save_draft()
        drafts.set_current_post(title="v2")
        second = await drafts.save_draft()
        return drafts, first, second

    drafts, first, second = asyncio.run(scenario())

    assert first == second
    assert [d.title for d in drafts.drafts] == ["v2"]
    assert gateway.calls_to("save_post")[1]["post_id"] == first


def test_fetch_without_user_is_a_no_op(gateway, bus) -> None:
    gateway.posts = {1: [{"id": 5, "title": "old"}]}

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        session.logout()
        gateway.posts[1] = []
        return drafts, await drafts.fetch_drafts()

    drafts, fetched = asyncio.run(scenario())

    assert fetched is False
    assert [d.id for d in drafts.drafts] == [5]
    assert len(gateway.calls_to("get_posts")) == 1


def test_save_requires_user(gateway, bus) -> None:
    async def scenario():
        _, drafts = _wire(gateway, bus)
        drafts.set_current_post(title="t", content="c")
        await drafts.save_draft()

    with pytest.raises(NotAuthenticatedError, match="login_required"):
        asyncio.run(scenario())
    assert gateway.calls_to("save_post") == []


def test_failed_save_keeps_post_unsaved(gateway, bus) -> None:
    gateway.failures["save_post"] = "title too long"

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        drafts.set_current_post(title="t", content="c")
        with pytest.raises(RemoteError, match="title too long"):
            await drafts.save_draft()
        return drafts

    drafts = asyncio.run(scenario())

    assert drafts.current_post.id is None
    assert drafts.current_post.title == "t"
    assert drafts.saving is False


def test_identity_change_discards_stale_fetch(gateway, bus) -> None:
    release = asyncio.Event()

    async def get_posts(args):
        if args["user_id"] == 1:
            await release.wait()
        return [{"id": args["user_id"] * 10, "title": "x"}]

    gateway.handlers["get_posts"] = get_posts

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await session.switch(User(**ALICE))
        await session.switch(User(**BOB))
        release.set()
        await drafts.wait_idle()
        return drafts

    drafts = asyncio.run(scenario())

    assert [d.id for d in drafts.drafts] == [20]
    assert drafts.owner_id == 2


def test_switching_user_clears_previous_drafts_even_if_fetch_fails(gateway, bus, events) -> None:
    gateway.posts = {1: [{"id": 5, "title": "alice-draft"}]}
    seen = events(DraftModel.COLLECTION_TOPIC)

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        gateway.failures["get_posts"] = "offline"
        await _login(session, drafts, BOB)
        return session, drafts

    session, drafts = asyncio.run(scenario())

    assert session.current_user.id == 2
    assert drafts.drafts == []
    assert drafts.owner_id is None
    assert seen[-1] == (DraftModel.COLLECTION_TOPIC, [])


def test_logout_then_same_user_keeps_collection_until_refetch(gateway, bus) -> None:
    gateway.posts = {1: [{"id": 5, "title": "alice-draft"}]}

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        session.logout()
        gateway.failures["get_posts"] = "offline"
        await _login(session, drafts, ALICE)
        return drafts

    drafts = asyncio.run(scenario())

    assert [d.id for d in drafts.drafts] == [5]
    assert drafts.owner_id == 1


def test_removing_cover_image_clears_cover(gateway, bus) -> None:
    _, drafts = _wire(gateway, bus)
    drafts.set_current_post(images=["img1.png", "img2.png"], cover_image="img1.png")

    assert drafts.remove_image("img1.png") == "img1.png"

    post = drafts.current_post
    assert post.cover_image is None
    assert post.images == ["img2.png"]


def test_local_edits(gateway, bus) -> None:
    _, drafts = _wire(gateway, bus)

    images = drafts.add_images([f"{i}.png" for i in range(12)])
    assert len(images) == MAX_IMAGES
    drafts.set_cover("0.png")
    assert drafts.remove_image(1) == "1.png"
    assert drafts.current_post.cover_image == "0.png"
    assert drafts.remove_image(42) is None

    drafts.set_current_post(content="Sunny day")
    drafts.append_tag("travel")
    assert drafts.current_post.content == "Sunny day #travel "

    drafts.load_draft(Post(id=3, title="Saved", images=["a.png"]))
    assert (drafts.current_post.id, drafts.current_post.title) == (3, "Saved")
    assert drafts.new_post() == Post()


def test_deleting_aliased_draft_orphans_current_post(gateway, bus) -> None:
    gateway.posts = {1: [{"id": 5, "title": "old"}]}

    async def scenario():
        session, drafts = _wire(gateway, bus)
        await _login(session, drafts, ALICE)
        drafts.load_draft(drafts.drafts[0])
        assert drafts.is_orphaned is False
        await drafts.delete_draft(5)
        return drafts

    drafts = asyncio.run(scenario())

    assert drafts.drafts == []
    assert drafts.current_post.id == 5
    assert drafts.is_orphaned is True

