"""Tests for permission checks and cascades in the App facade."""

from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from solnews.app import App
from solnews.core.modules.access.service import AccessService
from solnews.core.modules.article.service import ArticleService
from solnews.core.modules.comment.service import CommentService
from solnews.core.modules.discord.service import DiscordService
from solnews.core.modules.like.service import LikeService
from solnews.core.modules.session.models import AuthToken
from solnews.core.modules.session.service import SessionService
from solnews.core.modules.suggestion.service import SuggestionService
from solnews.core.modules.user.models import UserRole
from solnews.core.modules.user.service import UserService
from solnews.errors import AccessDeniedError, NotFoundError, ValidationError

TOKEN = AuthToken("token")


class RecordingCore:
    """Core stand-in: mocked services, the real AccessService and a transaction that records its use."""

    def __init__(self, actor) -> None:
        self.events: list[str] = []
        self.services = SimpleNamespace(
            user=MagicMock(spec=UserService),
            session=MagicMock(spec=SessionService),
            discord=MagicMock(spec=DiscordService),
            suggestion=MagicMock(spec=SuggestionService),
            article=MagicMock(spec=ArticleService),
            comment=MagicMock(spec=CommentService),
            like=MagicMock(spec=LikeService),
        )
        self.services.session.get_authenticated_user.return_value = actor
        self.services.access = AccessService(database=None)
        self.services.access.set_core(self)

    @asynccontextmanager
    async def transaction(self):
        self.events.append("begin")
        yield "session"
        self.events.append("commit")


def make_app(actor) -> tuple[App, RecordingCore]:
    app = App.__new__(App)
    core = RecordingCore(actor)
    app._core = core
    return app, core


class TestDeleteComment:
    """Tests for App.delete_comment."""

    @pytest.mark.asyncio
    async def test_author_deletes_subtree_with_likes(self, make_user, make_comment):
        author = make_user(UserRole.READER)
        comment = make_comment(author_id=author.id)
        reply_id = uuid4()
        app, core = make_app(author)
        core.services.comment.get_comment.return_value = comment
        core.services.comment.collect_subtree_ids.return_value = {comment.id, reply_id}

        await app.delete_comment(TOKEN, comment.article_id, comment.id)

        core.services.comment.collect_subtree_ids.assert_awaited_once_with([comment.id], "session")
        core.services.like.remove_likes_on_comments.assert_awaited_once_with({comment.id, reply_id}, "session")
        core.services.comment.delete_comments.assert_awaited_once_with({comment.id, reply_id}, "session")
        assert core.events == ["begin", "commit"]

    @pytest.mark.asyncio
    async def test_other_reader_is_denied(self, make_user, make_comment):
        comment = make_comment()
        app, core = make_app(make_user(UserRole.READER))
        core.services.comment.get_comment.return_value = comment

        with pytest.raises(AccessDeniedError):
            await app.delete_comment(TOKEN, comment.article_id, comment.id)

        assert core.events == []
        core.services.comment.delete_comments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_moderator_may_delete(self, make_user, make_comment):
        comment = make_comment()
        app, core = make_app(make_user(UserRole.MODERATOR))
        core.services.comment.get_comment.return_value = comment
        core.services.comment.collect_subtree_ids.return_value = {comment.id}

        await app.delete_comment(TOKEN, comment.article_id, comment.id)

        core.services.comment.delete_comments.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_comment_of_other_article_is_not_found(self, make_user, make_comment):
        """A comment id addressed through the wrong article is reported as missing."""
        comment = make_comment()
        app, core = make_app(make_user(UserRole.ADMIN))
        core.services.comment.get_comment.return_value = comment

        with pytest.raises(NotFoundError):
            await app.delete_comment(TOKEN, uuid4(), comment.id)


class TestToggleLike:
    @pytest.mark.asyncio
    async def test_banned_user_cannot_like(self, make_user, make_comment):
        comment = make_comment()
        app, core = make_app(make_user(UserRole.READER, is_banned=True))
        core.services.comment.get_comment.return_value = comment

        with pytest.raises(AccessDeniedError):
            await app.toggle_like(TOKEN, comment.article_id, comment.id)

        core.services.like.toggle_like.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delegates_to_like_service(self, make_user, make_comment):
        reader = make_user(UserRole.READER)
        comment = make_comment()
        app, core = make_app(reader)
        core.services.comment.get_comment.return_value = comment
        core.services.like.toggle_like.return_value = True

        assert await app.toggle_like(TOKEN, comment.article_id, comment.id) is True
        core.services.like.toggle_like.assert_awaited_once_with(reader.id, comment.id)


class TestUserManagement:
    """Tests for account level operations."""

    @pytest.mark.asyncio
    async def test_admin_cannot_ban_self(self, make_user):
        admin = make_user(UserRole.ADMIN)
        app, core = make_app(admin)
        core.services.user.get_user.return_value = admin

        with pytest.raises(ValidationError, match="yourself"):
            await app.ban_user(TOKEN, admin.id)

    @pytest.mark.asyncio
    async def test_moderator_cannot_ban(self, make_user):
        target = make_user(UserRole.READER)
        app, core = make_app(make_user(UserRole.MODERATOR))
        core.services.user.get_user.return_value = target

        with pytest.raises(AccessDeniedError):
            await app.ban_user(TOKEN, target.id)

        core.services.user.ban_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_user_cascade(self, make_user):
        """Own content and articles based on own suggestions go in one transaction, then grants are revoked."""
        user = make_user(UserRole.WRITER)
        app, core = make_app(user)
        services = core.services
        suggestion_id, own_article, based_article, comment_id = uuid4(), uuid4(), uuid4(), uuid4()
        services.user.get_user.return_value = user
        services.session.get_refresh_tokens_by_user.return_value = ["refresh-1"]
        services.suggestion.get_suggestion_ids_by_author.return_value = {suggestion_id}
        services.article.get_article_ids_by_author.return_value = {own_article}
        services.article.get_article_ids_by_suggestions.return_value = {based_article}
        services.comment.get_comment_ids_by_articles.return_value = set()
        services.comment.get_comment_ids_by_author.return_value = {comment_id}
        services.comment.collect_subtree_ids.return_value = {comment_id}

        async def revoke(refresh_token):
            core.events.append(f"revoke:{refresh_token}")
            return True, None

        services.discord.revoke_token.side_effect = revoke

        await app.delete_user(TOKEN, user.id)

        services.article.delete_articles.assert_awaited_once_with({own_article, based_article}, "session")
        services.comment.delete_comments.assert_any_await({comment_id}, "session")
        services.like.remove_likes_by_user.assert_awaited_once_with(user.id, "session")
        services.suggestion.delete_suggestions.assert_awaited_once_with({suggestion_id}, "session")
        services.session.delete_sessions_by_user.assert_awaited_once_with(user.id, "session")
        services.user.delete_user.assert_awaited_once_with(user.id, "session")
        services.user.evict_user.assert_called_once_with(user.id)
        assert core.events == ["begin", "commit", "revoke:refresh-1"]

    @pytest.mark.asyncio
    async def test_cannot_delete_other_account(self, make_user):
        target = make_user(UserRole.READER)
        app, core = make_app(make_user(UserRole.MODERATOR))
        core.services.user.get_user.return_value = target

        with pytest.raises(AccessDeniedError):
            await app.delete_user(TOKEN, target.id)

        assert core.events == []


class TestDeleteArticle:
    """Tests for App.delete_article cascade."""

    @pytest.mark.asyncio
    async def test_moderator_deletes_article_with_comments_and_likes(self, make_user):
        article = SimpleNamespace(id=uuid4(), author_id=uuid4())
        comment_ids = {uuid4(), uuid4()}
        app, core = make_app(make_user(UserRole.MODERATOR))
        core.services.article.get_article.return_value = article
        core.services.comment.get_comment_ids_by_articles.return_value = comment_ids

        await app.delete_article(TOKEN, article.id)

        core.services.comment.get_comment_ids_by_articles.assert_awaited_once_with([article.id], "session")
        core.services.like.remove_likes_on_comments.assert_awaited_once_with(comment_ids, "session")
        core.services.comment.delete_comments.assert_awaited_once_with(comment_ids, "session")
        core.services.article.delete_articles.assert_awaited_once_with([article.id], "session")
        assert core.events == ["begin", "commit"]

    @pytest.mark.asyncio
    async def test_likes_go_before_comments_and_article(self, make_user):
        article = SimpleNamespace(id=uuid4(), author_id=uuid4())
        app, core = make_app(make_user(UserRole.ADMIN))
        core.services.article.get_article.return_value = article
        core.services.comment.get_comment_ids_by_articles.return_value = {uuid4()}
        steps: list[str] = []
        core.services.like.remove_likes_on_comments.side_effect = lambda *args: steps.append("likes")
        core.services.comment.delete_comments.side_effect = lambda *args: steps.append("comments")
        core.services.article.delete_articles.side_effect = lambda *args: steps.append("articles")

        await app.delete_article(TOKEN, article.id)

        assert steps == ["likes", "comments", "articles"]

    @pytest.mark.asyncio
    async def test_reader_is_denied(self, make_user):
        article = SimpleNamespace(id=uuid4(), author_id=uuid4())
        app, core = make_app(make_user(UserRole.READER))
        core.services.article.get_article.return_value = article

        with pytest.raises(AccessDeniedError):
            await app.delete_article(TOKEN, article.id)

        assert core.events == []
        core.services.article.delete_articles.assert_not_awaited()


class TestDeleteSuggestion:
    """Tests for App.delete_suggestion cascade."""

    @pytest.mark.asyncio
    async def test_deletes_based_articles_in_one_transaction(self, make_user):
        suggestion = SimpleNamespace(id=uuid4(), author_id=uuid4())
        article_ids = [uuid4()]
        comment_ids = {uuid4()}
        app, core = make_app(make_user(UserRole.MODERATOR))
        core.services.suggestion.get_suggestion.return_value = suggestion
        core.services.article.get_article_ids_by_suggestions.return_value = article_ids
        core.services.comment.get_comment_ids_by_articles.return_value = comment_ids

        await app.delete_suggestion(TOKEN, suggestion.id)

        core.services.article.get_article_ids_by_suggestions.assert_awaited_once_with([suggestion.id], "session")
        core.services.like.remove_likes_on_comments.assert_awaited_once_with(comment_ids, "session")
        core.services.comment.delete_comments.assert_awaited_once_with(comment_ids, "session")
        core.services.article.delete_articles.assert_awaited_once_with(article_ids, "session")
        core.services.suggestion.delete_suggestions.assert_awaited_once_with([suggestion.id], "session")
        assert core.events == ["begin", "commit"]

    @pytest.mark.asyncio
    async def test_author_reader_is_denied(self, make_user):
        """Suggestion authors cannot delete their own suggestions."""
        author = make_user(UserRole.READER)
        suggestion = SimpleNamespace(id=uuid4(), author_id=author.id)
        app, core = make_app(author)
        core.services.suggestion.get_suggestion.return_value = suggestion

        with pytest.raises(AccessDeniedError):
            await app.delete_suggestion(TOKEN, suggestion.id)

        assert core.events == []
        core.services.suggestion.delete_suggestions.assert_not_awaited()
