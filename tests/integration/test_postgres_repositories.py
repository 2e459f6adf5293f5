"""End-to-end repository tests against PostgreSQL.

Run with TEST_DATABASE_URL pointing at a disposable database; the tables are
truncated before every test.
"""

import asyncio

import asyncpg
import pytest
from pydantic import ValidationError

from lokkatha.api.auth.credentials import CredentialsAuthenticator
from lokkatha.api.database.errors import DuplicateEmailError
from lokkatha.api.models.requests import TaleCreate, TaleUpdate, UserCreate

pytestmark = pytest.mark.requires_postgres


async def make_author(users, email="maya@example.org"):
    return await users.create_user(
        UserCreate(name="Maya Gurung", email=email, password="hashed", institution="Tribhuvan University")
    )


async def make_tale(tales, author_id, **overrides):
    fields = {
        "title": "The Snow Lion",
        "story": "A snow lion crossed the glacier at dawn.",
        "region": "Himalayan",
        "author_id": author_id,
    }
    fields.update(overrides)
    return await tales.create_tale(TaleCreate(**fields))


class TestUsers:
    @pytest.mark.asyncio
    async def test_unknown_email_is_soft_miss(self, users):
        assert await users.get_user_by_email("nobody@example.org") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, users):
        await make_author(users)

        with pytest.raises(DuplicateEmailError):
            await make_author(users)

    @pytest.mark.asyncio
    async def test_lookup_by_id(self, users):
        author = await make_author(users)

        found = await users.get_user_by_id(author.id)

        assert found == author


class TestTales:
    @pytest.mark.asyncio
    async def test_public_pagination_newest_first(self, users, tales):
        author = await make_author(users)
        created = []
        for i in range(5):
            created.append(await make_tale(tales, author.id, title=f"Tale {i}"))
        await make_tale(tales, author.id, title="Hidden", is_public=False)

        page = await tales.get_public_tales(limit=2, page=2, filters={})

        newest_first = list(reversed(created))
        assert [t.id for t in page] == [newest_first[2].id, newest_first[3].id]
        assert page[0].author.name == "Maya Gurung"
        assert page[0].author.email is None
        assert await tales.get_tales_count() == 5

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, users, tales):
        author = await make_author(users)
        await make_tale(tales, author.id, title="Yeti Tale")
        await make_tale(tales, author.id, title="Night visitor", story="Then a YETI appeared.")
        await make_tale(tales, author.id, title="Snowman story", story="Cold hands.")

        found = await tales.get_public_tales(filters={"search": "yeti"})

        assert sorted(t.title for t in found) == ["Night visitor", "Yeti Tale"]

    @pytest.mark.asyncio
    async def test_region_filter(self, users, tales):
        author = await make_author(users)
        await make_tale(tales, author.id, region="Terai")
        await make_tale(tales, author.id, region="Mid-Hills")

        found = await tales.get_public_tales(filters={"region": "Terai"})

        assert [t.region.value for t in found] == ["Terai"]

    @pytest.mark.asyncio
    async def test_update_missing_tale_creates_nothing(self, tales):
        assert await tales.update_tale("missing", TaleUpdate(title="New")) is None
        assert await tales.get_tales_count() == 0

    @pytest.mark.asyncio
    async def test_update_stamps_updated_at_and_resolves_author(self, users, tales):
        author = await make_author(users)
        tale = await make_tale(tales, author.id)

        updated = await tales.update_tale(tale.id, TaleUpdate(title="The White Lion"))

        assert updated.title == "The White Lion"
        assert updated.story == tale.story
        assert updated.updated_at > tale.updated_at
        assert updated.created_at == tale.created_at
        assert updated.author.institution == "Tribhuvan University"

    @pytest.mark.asyncio
    async def test_delete_twice(self, users, tales):
        author = await make_author(users)
        tale = await make_tale(tales, author.id)

        assert (await tales.delete_tale(tale.id)).id == tale.id
        assert await tales.delete_tale(tale.id) is None

    @pytest.mark.asyncio
    async def test_user_tales_include_private(self, users, tales):
        author = await make_author(users)
        other = await make_author(users, email="other@example.org")
        await make_tale(tales, author.id, is_public=False)
        await make_tale(tales, author.id)
        await make_tale(tales, other.id)

        mine = await tales.get_user_tales(author.id)

        assert len(mine) == 2
        assert {t.is_public for t in mine} == {True, False}

    @pytest.mark.asyncio
    async def test_dangling_author(self, tales):
        tale = await make_tale(tales, "no-such-user")

        assert tale.author is None
        assert (await tales.get_tale_by_id(tale.id)).author is None

    @pytest.mark.asyncio
    async def test_unknown_region_is_rejected(self, database, users, tales):
        author = await make_author(users)

        with pytest.raises(ValidationError):
            await make_tale(tales, author.id, region="Atlantis")

        pool = await database.connect()
        with pytest.raises(asyncpg.CheckViolationError):
            await pool.execute(
                "INSERT INTO tales (id, title, story, region, author_id) VALUES ('x', 't', 's', 'Atlantis', $1)",
                author.id,
            )
        assert await tales.get_tales_count() == 0


class TestViews:
    @pytest.mark.asyncio
    async def test_concurrent_views_are_all_counted(self, users, tales, analytics):
        author = await make_author(users)
        tale = await make_tale(tales, author.id)

        await asyncio.gather(*(tales.increment_tale_views(tale.id) for _ in range(5)))

        assert (await tales.get_tale_by_id(tale.id)).views == 5
        events = await analytics.get_events(event_type="tale_view", tale_id=tale.id)
        assert len(events) == 5

    @pytest.mark.asyncio
    async def test_events_survive_tale_deletion(self, users, tales, analytics):
        author = await make_author(users)
        tale = await make_tale(tales, author.id)
        await tales.increment_tale_views(tale.id)

        await tales.delete_tale(tale.id)

        assert len(await analytics.get_events(tale_id=tale.id)) == 1


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_register_then_authorize(self, users):
        auth = CredentialsAuthenticator(users)
        registered = await auth.register("Maya Gurung", "maya@example.org", "namaste-2024")

        identity = await auth.authorize("maya@example.org", "namaste-2024")

        assert identity == registered
        assert await auth.authorize("maya@example.org", "wrong") is None
        assert await auth.authorize("nobody@example.org", "namaste-2024") is None
