from collections.abc import AsyncGenerator, Collection
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.client_session import AsyncClientSession

from solnews.config import Config
from solnews.core.core import Core
from solnews.core.modules.access.policy import Resource, ResourceKind
from solnews.core.modules.article.models import Article, ArticleDetail, ArticleSummary, ArticleView, SuggestionRef
from solnews.core.modules.comment.models import Comment, CommentNode
from solnews.core.modules.comment.tree import assemble_forest
from solnews.core.modules.session.models import AuthToken
from solnews.core.modules.suggestion.models import Suggestion, SuggestionView
from solnews.core.modules.user.models import AuthorView, User, UserActivity, UserProfileView, UserRole, UserView
from solnews.core.pagination import PaginationResult
from solnews.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

HOME_ITEMS = 10


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Authentication ===
    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.is_auth_token_valid(auth_token)

    def discord_login_url(self) -> tuple[str, str]:
        """Discord authorize URL and the state value the redirect must echo back."""
        state = self._core.services.discord.new_state()
        return self._core.services.discord.build_authorize_url(state), state

    async def discord_login(self, code: str) -> AuthToken:
        """Finish the OAuth flow: exchange the code, upsert the user, open a session."""
        discord = self._core.services.discord
        tokens = await discord.exchange_code(code)
        discord_user = await discord.fetch_user(tokens.access_token)
        user = await self._core.services.user.upsert_discord_user(discord_user)
        logger.info("user_logged_in", user_id=user.id)
        return await self._core.services.session.create_session(user.id, tokens.refresh_token)

    async def logout(self, auth_token: AuthToken) -> None:
        """Revoke the Discord grant of this session and invalidate it."""
        await self._core.services.access.ensure_authenticated(auth_token)
        session = await self._core.services.session.get_session(auth_token)
        if session.discord_refresh_token:
            await self._core.services.discord.revoke_token(session.discord_refresh_token)
        await self._core.services.session.invalidate_session(auth_token)

    # === Users ===
    async def get_all_users(self) -> list[UserView]:
        """Get all users (public)."""
        return [UserView.from_domain(user) for user in self._core.services.user.get_all_users()]

    async def get_user_profile(self, user_id: UUID) -> UserProfileView:
        """Get a user with activity counters (public)."""
        user = self._core.services.user.get_user(user_id)
        return await self._profile_view(user)

    async def get_current_user(self, auth_token: AuthToken) -> UserProfileView:
        """Get current authenticated user profile."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._profile_view(current_user)

    async def update_profile(
        self, auth_token: AuthToken, user_id: UUID, username: str | None, biography: str | None
    ) -> UserView:
        """Update display name and biography (own account only)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        target = self._core.services.user.get_user(user_id)
        self._core.services.access.ensure_can_update(current_user, Resource(ResourceKind.USER, target.id))
        user = await self._core.services.user.update_profile(target.id, username, biography)
        return UserView.from_domain(user)

    async def delete_user(self, auth_token: AuthToken, user_id: UUID) -> None:
        """Delete an account and everything it owns (own account, or admin)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        target = self._core.services.user.get_user(user_id)
        self._core.services.access.ensure_can_delete(current_user, Resource(ResourceKind.USER, target.id))

        services = self._core.services
        refresh_tokens = await services.session.get_refresh_tokens_by_user(target.id)

        async with self._core.transaction() as session:
            suggestion_ids = await services.suggestion.get_suggestion_ids_by_author(target.id, session)
            article_ids = await services.article.get_article_ids_by_author(target.id, session)
            article_ids |= await services.article.get_article_ids_by_suggestions(suggestion_ids, session)
            await self._delete_articles(article_ids, session)
            await self._delete_comment_trees(await services.comment.get_comment_ids_by_author(target.id, session), session)
            await services.like.remove_likes_by_user(target.id, session)
            await services.suggestion.delete_suggestions(suggestion_ids, session)
            await services.session.delete_sessions_by_user(target.id, session)
            await services.user.delete_user(target.id, session)

        services.user.evict_user(target.id)
        logger.info("user_deleted", user_id=target.id, deleted_by=current_user.id, articles=len(article_ids))

        # The local account is gone either way, a failed revoke only leaves a stale grant on Discord
        for refresh_token in refresh_tokens:
            await services.discord.revoke_token(refresh_token)

    async def ban_user(self, auth_token: AuthToken, user_id: UUID) -> UserView:
        """Ban a user (admin only)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        target = self._core.services.user.get_user(user_id)
        self._core.services.access.ensure_can_ban(current_user)
        if target.id == current_user.id:
            raise ValidationError("Cannot ban yourself")
        return UserView.from_domain(await self._core.services.user.ban_user(target.id))

    async def set_user_role(self, auth_token: AuthToken, user_id: UUID, role: UserRole) -> UserView:
        """Change a user's role (admin only)."""
        current_user = await self._core.services.access.ensure_admin(auth_token)
        target = self._core.services.user.get_user(user_id)
        if target.id == current_user.id:
            raise ValidationError("Cannot change your own role")
        return UserView.from_domain(await self._core.services.user.set_role(target.id, role))

    # === News suggestions ===
    async def get_suggestions(self, limit: int = 10, offset: int = 0) -> PaginationResult[SuggestionView]:
        """Get paginated news suggestions (public)."""
        page = await self._core.services.suggestion.list_suggestions(limit, offset)
        return page.with_items([self._suggestion_view(suggestion) for suggestion in page.items])

    async def get_suggestion(self, suggestion_id: UUID) -> SuggestionView:
        """Get news suggestion by id (public)."""
        return self._suggestion_view(await self._core.services.suggestion.get_suggestion(suggestion_id))

    async def create_suggestion(
        self, auth_token: AuthToken, source: str, title: str, content: str, image: str
    ) -> SuggestionView:
        """Submit a news suggestion (any user that is not banned)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        self._core.services.access.ensure_can_create(current_user, ResourceKind.SUGGESTION)
        suggestion = await self._core.services.suggestion.create_suggestion(current_user.id, source, title, content, image)
        return self._suggestion_view(suggestion)

    async def update_suggestion(
        self,
        auth_token: AuthToken,
        suggestion_id: UUID,
        source: str | None = None,
        title: str | None = None,
        content: str | None = None,
        image: str | None = None,
    ) -> SuggestionView:
        """Edit a news suggestion (moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        suggestion = await self._core.services.suggestion.get_suggestion(suggestion_id)
        self._core.services.access.ensure_can_update(current_user, Resource(ResourceKind.SUGGESTION, suggestion.author_id))
        updated = await self._core.services.suggestion.update_suggestion(suggestion.id, source, title, content, image)
        return self._suggestion_view(updated)

    async def delete_suggestion(self, auth_token: AuthToken, suggestion_id: UUID) -> None:
        """Delete a news suggestion with the articles based on it (moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        suggestion = await self._core.services.suggestion.get_suggestion(suggestion_id)
        self._core.services.access.ensure_can_delete(current_user, Resource(ResourceKind.SUGGESTION, suggestion.author_id))

        async with self._core.transaction() as session:
            article_ids = await self._core.services.article.get_article_ids_by_suggestions([suggestion.id], session)
            await self._delete_articles(article_ids, session)
            await self._core.services.suggestion.delete_suggestions([suggestion.id], session)

        logger.info("suggestion_deleted", suggestion_id=suggestion.id, deleted_by=current_user.id, articles=len(article_ids))

    # === Articles ===
    async def get_articles(self, limit: int = 10, offset: int = 0) -> PaginationResult[ArticleView]:
        """Get paginated articles, newest first (public)."""
        page = await self._core.services.article.list_articles(limit, offset)
        suggestions = await self._core.services.suggestion.get_suggestions_by_ids(
            {article.suggestion_id for article in page.items if article.suggestion_id}
        )
        return page.with_items([self._article_view(article, suggestions) for article in page.items])

    async def get_article_summaries(self, limit: int = 10, offset: int = 0) -> PaginationResult[ArticleSummary]:
        """Get paginated article summaries with comment counts (public)."""
        page = await self._core.services.article.list_summaries(limit, offset)
        return page.with_items([self._summary_view(doc) for doc in page.items])

    async def get_article(self, auth_token: AuthToken | None, article_id: UUID) -> ArticleDetail:
        """Get article with comment threads; likes are marked for a logged-in viewer."""
        viewer = await self._core.services.access.get_viewer(auth_token)
        article = await self._core.services.article.get_article(article_id)
        suggestions = await self._core.services.suggestion.get_suggestions_by_ids(
            [article.suggestion_id] if article.suggestion_id else []
        )
        view = self._article_view(article, suggestions)
        comments = await self._core.services.comment.get_article_thread(article.id, viewer.id if viewer else None)
        return ArticleDetail(**view.model_dump(), comments=comments)

    async def create_article(
        self,
        auth_token: AuthToken,
        title: str,
        content: str,
        image: str,
        references: str | list[str],
        suggestion_id: UUID | None = None,
    ) -> ArticleView:
        """Publish an article (writers, moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        self._core.services.access.ensure_can_create(current_user, ResourceKind.ARTICLE)
        article = await self._core.services.article.create_article(
            current_user.id, title, content, image, references, suggestion_id
        )
        suggestions = await self._core.services.suggestion.get_suggestions_by_ids([suggestion_id] if suggestion_id else [])
        return self._article_view(article, suggestions)

    async def update_article(
        self,
        auth_token: AuthToken,
        article_id: UUID,
        title: str | None = None,
        content: str | None = None,
        image: str | None = None,
        references: str | list[str] | None = None,
    ) -> ArticleView:
        """Edit an article (moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        article = await self._core.services.article.get_article(article_id)
        self._core.services.access.ensure_can_update(current_user, Resource(ResourceKind.ARTICLE, article.author_id))
        updated = await self._core.services.article.update_article(article.id, title, content, image, references)
        suggestions = await self._core.services.suggestion.get_suggestions_by_ids(
            [updated.suggestion_id] if updated.suggestion_id else []
        )
        return self._article_view(updated, suggestions)

    async def delete_article(self, auth_token: AuthToken, article_id: UUID) -> None:
        """Delete an article with its comments and likes (moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        article = await self._core.services.article.get_article(article_id)
        self._core.services.access.ensure_can_delete(current_user, Resource(ResourceKind.ARTICLE, article.author_id))

        async with self._core.transaction() as session:
            await self._delete_articles([article.id], session)

        logger.info("article_deleted", article_id=article.id, deleted_by=current_user.id)

    # === Home ===
    async def get_home_content(self) -> tuple[list[ArticleSummary], list[SuggestionView]]:
        """Latest article summaries and latest news suggestions (public)."""
        articles = await self.get_article_summaries(limit=HOME_ITEMS)
        suggestions = await self.get_suggestions(limit=HOME_ITEMS)
        return articles.items, suggestions.items

    # === Comments ===
    async def get_article_comments(self, auth_token: AuthToken | None, article_id: UUID) -> list[CommentNode]:
        """Comment threads of an article, newest first."""
        viewer = await self._core.services.access.get_viewer(auth_token)
        article = await self._core.services.article.get_article(article_id)
        return await self._core.services.comment.get_article_thread(article.id, viewer.id if viewer else None)

    async def create_comment(
        self, auth_token: AuthToken, article_id: UUID, body: str, parent_id: UUID | None = None
    ) -> CommentNode:
        """Comment on an article or reply to one of its comments."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        article = await self._core.services.article.get_article(article_id)
        self._core.services.access.ensure_can_create(current_user, ResourceKind.COMMENT)
        comment = await self._core.services.comment.create_comment(article.id, current_user.id, body, parent_id)
        return self._comment_node(comment, liked=False)

    async def edit_comment(self, auth_token: AuthToken, article_id: UUID, comment_id: UUID, body: str) -> CommentNode:
        """Edit own comment."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        comment = await self._resolve_comment(article_id, comment_id)
        self._core.services.access.ensure_can_update(current_user, Resource(ResourceKind.COMMENT, comment.author_id))
        updated = await self._core.services.comment.edit_comment(comment.id, body)
        liked = await self._core.services.like.get_liked_comment_ids(current_user.id, [updated.id])
        return self._comment_node(updated, liked=updated.id in liked)

    async def delete_comment(self, auth_token: AuthToken, article_id: UUID, comment_id: UUID) -> None:
        """Delete a comment with all replies (author, moderators and admins)."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        comment = await self._resolve_comment(article_id, comment_id)
        self._core.services.access.ensure_can_delete(current_user, Resource(ResourceKind.COMMENT, comment.author_id))

        async with self._core.transaction() as session:
            deleted = await self._delete_comment_trees([comment.id], session)

        logger.info("comment_deleted", comment_id=comment.id, deleted_by=current_user.id, with_replies=deleted)

    async def toggle_like(self, auth_token: AuthToken, article_id: UUID, comment_id: UUID) -> bool:
        """Like or unlike a comment; returns whether it is liked afterwards."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        comment = await self._resolve_comment(article_id, comment_id)
        self._core.services.access.ensure_can_create(current_user, ResourceKind.COMMENT)
        return await self._core.services.like.toggle_like(current_user.id, comment.id)

    # === Cascades (run inside a transaction) ===
    async def _delete_comment_trees(self, comment_ids: Collection[UUID], session: AsyncClientSession) -> int:
        """Delete comments, every reply below them and all their likes."""
        ids = await self._core.services.comment.collect_subtree_ids(comment_ids, session)
        await self._core.services.like.remove_likes_on_comments(ids, session)
        return await self._core.services.comment.delete_comments(ids, session)

    async def _delete_articles(self, article_ids: Collection[UUID], session: AsyncClientSession) -> None:
        """Delete articles with all their comments and likes."""
        comment_ids = await self._core.services.comment.get_comment_ids_by_articles(article_ids, session)
        await self._core.services.like.remove_likes_on_comments(comment_ids, session)
        await self._core.services.comment.delete_comments(comment_ids, session)
        await self._core.services.article.delete_articles(article_ids, session)

    # === Private resolver and view methods ===
    async def _resolve_comment(self, article_id: UUID, comment_id: UUID) -> Comment:
        """Resolve a comment that must belong to the given article. Raises NotFoundError otherwise."""
        comment = await self._core.services.comment.get_comment(comment_id)
        if comment.article_id != article_id:
            raise NotFoundError(f"Comment not found: {comment_id}")
        return comment

    def _author(self, user_id: UUID) -> AuthorView:
        user = self._core.services.user.find_user(user_id)
        return AuthorView.from_domain(user) if user else AuthorView.deleted(user_id)

    def _suggestion_view(self, suggestion: Suggestion) -> SuggestionView:
        return SuggestionView.from_domain(suggestion, self._author(suggestion.author_id))

    def _article_view(self, article: Article, suggestions: dict[UUID, Suggestion]) -> ArticleView:
        based_on = suggestions.get(article.suggestion_id) if article.suggestion_id else None
        return ArticleView.from_domain(
            article, self._author(article.author_id), SuggestionRef.from_domain(based_on) if based_on else None
        )

    def _summary_view(self, doc: dict[str, Any]) -> ArticleSummary:
        return ArticleSummary(
            id=doc["_id"],
            author=self._author(doc["author_id"]),
            title=doc["title"],
            content_summary=doc["content_summary"],
            image=doc["image"],
            comment_count=doc["comment_count"],
            created_at=doc["created_at"],
        )

    def _comment_node(self, comment: Comment, liked: bool) -> CommentNode:
        """Single comment without replies, e.g. right after creating or editing it."""
        return assemble_forest([comment], {comment.id} if liked else set(), self._core.services.user.get_user_cache())[0]

    async def _profile_view(self, user: User) -> UserProfileView:
        services = self._core.services
        activity = UserActivity(
            articles=await services.article.count_by_author(user.id),
            suggestions=await services.suggestion.count_by_author(user.id),
            comments=await services.comment.count_by_author(user.id),
            likes=await services.like.count_by_user(user.id),
        )
        return UserProfileView(**UserView.from_domain(user).model_dump(), activity=activity)
