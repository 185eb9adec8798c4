import pytest

from researchmind.errors import SessionStoreError
from researchmind.models import ResearchSession, Source
from researchmind.session_store import SessionStore


@pytest.fixture
def store(tmp_path):
    return SessionStore(str(tmp_path / "data" / "sessions.json"))


@pytest.mark.asyncio
async def test_load_missing_file_is_empty(store):
    assert await store.load() == []
    assert await store.get("nope") is None


@pytest.mark.asyncio
async def test_create_prepends_newest(store):
    first = await store.create("first topic")
    second = await store.create("second topic")

    sessions = await store.load()

    assert [s.id for s in sessions] == [second.id, first.id]
    assert sessions[1].topic == "first topic"


@pytest.mark.asyncio
async def test_update_round_trips_sources(store):
    session = await store.create("topic")
    source = Source(type="pasted", title="Pasted Text (10:00:00)", content="hello", status="complete")
    await store.update(session.model_copy(update={"sources": [source]}))

    reloaded = SessionStore(store.path)
    stored = await reloaded.get(session.id)

    assert stored.sources == [source]
    assert stored.createdAt == session.createdAt


@pytest.mark.asyncio
async def test_update_unknown_session_raises(store):
    with pytest.raises(KeyError):
        await store.update(ResearchSession(topic="ghost"))


@pytest.mark.asyncio
async def test_delete(store):
    keep = await store.create("keep")
    drop = await store.create("drop")

    await store.delete(drop.id)

    assert [s.id for s in await store.load()] == [keep.id]
    with pytest.raises(KeyError):
        await store.delete(drop.id)


@pytest.mark.asyncio
async def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text('[{"id": 1, "sources": "nope"}]', encoding="utf-8")
    with pytest.raises(SessionStoreError):
        await SessionStore(str(path)).load()


@pytest.mark.asyncio
async def test_save_replaces_everything(store):
    await store.create("old")
    fresh = ResearchSession(topic="fresh")
    await store.save([fresh])
    assert [s.topic for s in await store.load()] == ["fresh"]


@pytest.mark.asyncio
async def test_patch_changes_only_given_fields(store):
    session = await store.create("original topic")
    await store.update(session.model_copy(update={"topic": "edited topic"}))
    source = Source(type="pasted", title="p", content="x", status="complete")

    patched = await store.patch(session.id, sources=[source])

    assert patched.topic == "edited topic"
    stored = await store.get(session.id)
    assert stored.topic == "edited topic"
    assert stored.sources == [source]


@pytest.mark.asyncio
async def test_patch_unknown_session_raises(store):
    with pytest.raises(KeyError):
        await store.patch("missing", topic="x")
