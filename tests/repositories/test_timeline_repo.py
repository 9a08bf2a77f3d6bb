"""Timeline repository against an in-memory SQLite store"""
from datetime import UTC, datetime

import pytest

from core.enums import AttachmentKind
from repositories.timeline_repo import TimelineRepository
from schemas.timeline import Attachment, TimelineItemCreate


@pytest.fixture
def repo(test_db):
    return TimelineRepository(test_db)


@pytest.mark.asyncio
async def test_create_assigns_id_and_created_at(repo):
    item = await repo.create_from(
        TimelineItemCreate(date=datetime(2024, 3, 1, tzinfo=UTC), title="Started sabbatical")
    )

    assert item.id
    assert item.created_at is not None
    assert item.file_url is None


@pytest.mark.asyncio
async def test_list_ordered_most_recent_first(repo):
    await repo.create_from(TimelineItemCreate(date=datetime(2022, 1, 1, tzinfo=UTC), title="Old"))
    await repo.create_from(TimelineItemCreate(date=datetime(2024, 1, 1, tzinfo=UTC), title="New"))
    await repo.create_from(TimelineItemCreate(date=datetime(2023, 1, 1, tzinfo=UTC), title="Middle"))

    items = await repo.list_ordered()

    assert [i.title for i in items] == ["New", "Middle", "Old"]


@pytest.mark.asyncio
async def test_replace_keeps_id_and_attachment_without_new_file(repo):
    attachment = Attachment(url="/api/files/download/images/x_a.png", name="a.png", kind=AttachmentKind.IMAGE)
    item = await repo.create_from(
        TimelineItemCreate(date=datetime(2024, 3, 1, tzinfo=UTC), title="Photo", attachment=attachment)
    )

    replaced = await repo.replace(
        item.id,
        TimelineItemCreate(date=datetime(2024, 3, 5, tzinfo=UTC), title="Photo, renamed", description="d"),
    )

    assert replaced is not None
    assert replaced.id == item.id
    assert replaced.title == "Photo, renamed"
    assert replaced.description == "d"
    assert replaced.file_url == attachment.url
    assert replaced.file_type == "image"


@pytest.mark.asyncio
async def test_replace_missing_returns_none(repo):
    result = await repo.replace(
        "missing", TimelineItemCreate(date=datetime(2024, 3, 5, tzinfo=UTC), title="Ghost")
    )

    assert result is None


@pytest.mark.asyncio
async def test_delete_by_id(repo):
    item = await repo.create_from(TimelineItemCreate(date=datetime(2024, 3, 1, tzinfo=UTC), title="Gone"))

    assert await repo.delete_by_id(item.id) is True
    assert await repo.get_by_id(item.id) is None
    assert await repo.delete_by_id(item.id) is False
