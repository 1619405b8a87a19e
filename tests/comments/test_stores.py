"""Tests for the Cassandra post and comment stores."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from cassandra.cluster import Session

from headless_comments.comments.models import (
    ApprovalState,
    CommentDraft,
    CommentStatus,
    SortOrder,
)
from headless_comments.comments.stores import (
    CassandraCommentStore,
    CassandraPostStore,
    PersistenceError,
)


NOW = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    # Mock prepare to avoid actual statement preparation
    session.prepare = Mock(side_effect=lambda cql: Mock(name=cql.strip()[:40]))
    # Make aexecute awaitable (cassandra-asyncio-driver)
    session.aexecute = AsyncMock()
    return session


@pytest.fixture
def comment_store(mock_session) -> CassandraCommentStore:
    """Comment store over the mock session."""
    return CassandraCommentStore(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def draft() -> CommentDraft:
    """A validated draft."""
    return CommentDraft(
        post_id=1,
        author_name="Ada",
        author_email="Ada@Example.com",
        content="Hello",
        parent_id=0,
        author_ip="203.0.113.7",
        user_agent="pytest",
        submitted_at_local=NOW,
        submitted_at_utc=NOW,
    )


def result(row=None, was_applied=True):
    """A Cassandra result set stand-in."""
    res = Mock()
    res.one.return_value = row
    res.was_applied = was_applied
    return res


def comment_row(comment_id: int, approval_state: str = "approved", **overrides):
    """A comments table row."""
    values = {
        "comment_id": comment_id,
        "post_id": 1,
        "parent_id": None,
        "author_name": "Ada",
        "author_email": "ada@example.com",
        "author_url": None,
        "author_ip": "203.0.113.7",
        "user_agent": "pytest",
        "content": "Hello",
        "comment_type": "comment",
        "approval_state": approval_state,
        "created_at": datetime(2024, 5, 1, 10, 0),
        "created_at_local": "2024-05-01T10:00:00+00:00",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestCassandraPostStore:
    """Tests for CassandraPostStore."""

    @pytest.mark.asyncio
    async def test_get_open_post(self, mock_session) -> None:
        """Rows map to posts."""
        mock_session.aexecute.return_value = result(
            SimpleNamespace(
                post_id=1,
                title="Hello",
                permalink="https://blog.example.com/hello",
                comment_status="open",
                author_email=None,
            )
        )
        store = CassandraPostStore(session=mock_session, keyspace="test_keyspace")

        post = await store.get(1)

        assert post is not None
        assert post.comment_status == CommentStatus.OPEN
        assert await store.exists(1) is True
        assert await store.comments_open(1) is True

    @pytest.mark.asyncio
    async def test_missing_post(self, mock_session) -> None:
        """Missing rows mean the post does not exist."""
        mock_session.aexecute.return_value = result(None)
        store = CassandraPostStore(session=mock_session, keyspace="test_keyspace")

        assert await store.exists(9) is False
        assert await store.comments_open(9) is False


class TestAllocateId:
    """Tests for integer id allocation."""

    @pytest.mark.asyncio
    async def test_first_id(self, comment_store, mock_session) -> None:
        """An empty sequence is created and starts at 1."""
        mock_session.aexecute.side_effect = [result(None), result(was_applied=True)]

        assert await comment_store._allocate_id() == 1

    @pytest.mark.asyncio
    async def test_advances_sequence(self, comment_store, mock_session) -> None:
        """The current value is claimed with a conditional update."""
        mock_session.aexecute.side_effect = [
            result(SimpleNamespace(next_id=7)),
            result(was_applied=True),
        ]

        assert await comment_store._allocate_id() == 7
        _, args = mock_session.aexecute.call_args.args
        assert args == [8, "comments", 7]

    @pytest.mark.asyncio
    async def test_retries_on_contention(self, comment_store, mock_session) -> None:
        """A lost race re-reads the sequence and tries again."""
        mock_session.aexecute.side_effect = [
            result(SimpleNamespace(next_id=7)),
            result(was_applied=False),
            result(SimpleNamespace(next_id=8)),
            result(was_applied=True),
        ]

        assert await comment_store._allocate_id() == 8

    @pytest.mark.asyncio
    async def test_gives_up(self, comment_store, mock_session) -> None:
        """Persistent contention surfaces as a persistence error."""
        mock_session.aexecute.return_value = result(
            SimpleNamespace(next_id=7), was_applied=False
        )

        with pytest.raises(PersistenceError):
            await comment_store._allocate_id()

        assert mock_session.aexecute.call_count == 2 * CassandraCommentStore.MAX_ID_ATTEMPTS


class TestCassandraCommentStore:
    """Tests for CassandraCommentStore reads and writes."""

    @pytest.mark.asyncio
    async def test_insert_writes_all_tables(
        self, comment_store, mock_session, draft
    ) -> None:
        """Inserts go to the id, post and author tables."""
        mock_session.aexecute.side_effect = [
            result(SimpleNamespace(next_id=3)),
            result(was_applied=True),
            result(),
            result(),
            result(),
        ]

        comment_id = await comment_store.insert(draft, ApprovalState.PENDING)

        assert comment_id == 3
        assert mock_session.aexecute.call_count == 5
        by_author = mock_session.aexecute.call_args_list[-1].args[1]
        assert by_author == ["ada@example.com", 3, 1, "pending"]

    @pytest.mark.asyncio
    async def test_insert_failure(self, comment_store, mock_session, draft) -> None:
        """Driver errors are wrapped in PersistenceError."""
        mock_session.aexecute.side_effect = [
            result(SimpleNamespace(next_id=3)),
            result(was_applied=True),
            RuntimeError("write timeout"),
        ]

        with pytest.raises(PersistenceError, match="write timeout"):
            await comment_store.insert(draft, ApprovalState.APPROVED)

    @pytest.mark.asyncio
    async def test_get_adds_utc(self, comment_store, mock_session) -> None:
        """Naive driver timestamps are read as UTC."""
        mock_session.aexecute.return_value = result(comment_row(4))

        comment = await comment_store.get(4)

        assert comment is not None
        assert comment.created_at.tzinfo is UTC
        assert comment.parent_id == 0
        assert comment.author_url == ""

    @pytest.mark.asyncio
    async def test_list_approved_filters(self, comment_store, mock_session) -> None:
        """Only approved rows are returned, in driver order."""
        mock_session.aexecute.return_value = [
            comment_row(3),
            comment_row(2, "pending"),
            comment_row(1),
        ]

        comments = await comment_store.list_approved(1, SortOrder.DESC)

        assert [c.comment_id for c in comments] == [3, 1]

    @pytest.mark.asyncio
    async def test_list_uses_order_statement(self, comment_store, mock_session) -> None:
        """ASC and DESC use different prepared statements."""
        mock_session.aexecute.return_value = []

        await comment_store.list_approved(1, SortOrder.ASC)
        await comment_store.list_approved(1, SortOrder.DESC)

        first, second = (c.args[0] for c in mock_session.aexecute.call_args_list)
        assert first is comment_store._list_asc
        assert second is comment_store._list_desc

    @pytest.mark.asyncio
    async def test_tag_meta_failure(self, comment_store, mock_session) -> None:
        """Meta write errors are wrapped in PersistenceError."""
        mock_session.aexecute.side_effect = RuntimeError("unavailable")

        with pytest.raises(PersistenceError):
            await comment_store.tag_meta(3, "spam_check_result", "ham")

    @pytest.mark.asyncio
    async def test_has_approved_comment(self, comment_store, mock_session) -> None:
        """Any approved row in the author's history counts."""
        mock_session.aexecute.return_value = [
            SimpleNamespace(approval_state="pending"),
            SimpleNamespace(approval_state="approved"),
        ]

        assert await comment_store.has_approved_comment("Ada@Example.com") is True
        assert mock_session.aexecute.call_args.args[1] == ["ada@example.com"]
