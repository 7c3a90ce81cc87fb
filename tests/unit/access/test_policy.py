"""Tests for role and ownership based permissions."""

from uuid import uuid4

import pytest

from solnews.core.modules.access.policy import (
    Action,
    Resource,
    ResourceKind,
    can_ban,
    can_create,
    can_delete,
    can_manage_roles,
    can_moderate,
    can_update,
    is_allowed,
)
from solnews.core.modules.user.models import UserRole

ACTIVE_ROLES = [UserRole.ADMIN, UserRole.MODERATOR, UserRole.WRITER, UserRole.READER]


class TestCommentPermissions:
    """Tests for comment mutations."""

    def test_reader_cannot_delete_others_comment(self, make_user):
        reader = make_user(UserRole.READER)
        comment = Resource(ResourceKind.COMMENT, owner_id=uuid4())

        assert can_delete(reader, comment) is False

    def test_moderator_can_delete_others_comment(self, make_user):
        moderator = make_user(UserRole.MODERATOR)
        comment = Resource(ResourceKind.COMMENT, owner_id=uuid4())

        assert can_delete(moderator, comment) is True

    @pytest.mark.parametrize("role", ACTIVE_ROLES)
    def test_author_can_delete_own_comment(self, make_user, role):
        author = make_user(role)

        assert can_delete(author, Resource(ResourceKind.COMMENT, owner_id=author.id)) is True

    def test_admin_can_delete_any_comment(self, make_user):
        assert can_delete(make_user(UserRole.ADMIN), Resource(ResourceKind.COMMENT, owner_id=uuid4())) is True

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.MODERATOR, UserRole.WRITER])
    def test_only_author_can_edit_comment(self, make_user, role):
        """Staff can remove comments but not put words in someone's mouth."""
        actor = make_user(role)

        assert can_update(actor, Resource(ResourceKind.COMMENT, owner_id=uuid4())) is False
        assert can_update(actor, Resource(ResourceKind.COMMENT, owner_id=actor.id)) is True

    @pytest.mark.parametrize("role", ACTIVE_ROLES)
    def test_any_active_role_can_comment(self, make_user, role):
        assert can_create(make_user(role), ResourceKind.COMMENT) is True


class TestBannedActor:
    """A banned actor is denied every mutation, even on own content."""

    @pytest.mark.parametrize("kind", list(ResourceKind))
    def test_cannot_create_update_or_delete(self, make_user, kind):
        banned = make_user(UserRole.BANNED)
        own = Resource(kind, owner_id=banned.id)

        assert can_create(banned, kind) is False
        assert can_update(banned, own) is False
        assert can_delete(banned, own) is False

    def test_banned_flag_overrides_role(self, make_user):
        """A user with is_banned set loses the admin role on load."""
        former_admin = make_user(UserRole.ADMIN, is_banned=True)

        assert former_admin.role == UserRole.BANNED
        assert can_ban(former_admin) is False
        assert can_moderate(former_admin) is False


class TestArticleAndSuggestionPermissions:
    """Tests for articles and news suggestions."""

    @pytest.mark.parametrize(
        ("role", "allowed"),
        [
            (UserRole.ADMIN, True),
            (UserRole.MODERATOR, True),
            (UserRole.WRITER, True),
            (UserRole.READER, False),
        ],
    )
    def test_create_article(self, make_user, role, allowed):
        assert can_create(make_user(role), ResourceKind.ARTICLE) is allowed

    def test_writer_cannot_edit_own_article(self, make_user):
        """Published articles are changed by staff only."""
        writer = make_user(UserRole.WRITER)
        article = Resource(ResourceKind.ARTICLE, owner_id=writer.id)

        assert can_update(writer, article) is False
        assert can_delete(writer, article) is False

    @pytest.mark.parametrize("kind", [ResourceKind.ARTICLE, ResourceKind.SUGGESTION])
    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.MODERATOR])
    def test_staff_manage_articles_and_suggestions(self, make_user, kind, role):
        staff = make_user(role)
        resource = Resource(kind, owner_id=uuid4())

        assert can_update(staff, resource) is True
        assert can_delete(staff, resource) is True

    @pytest.mark.parametrize("role", ACTIVE_ROLES)
    def test_any_active_role_can_suggest(self, make_user, role):
        assert can_create(make_user(role), ResourceKind.SUGGESTION) is True

    def test_reader_cannot_delete_own_suggestion(self, make_user):
        reader = make_user(UserRole.READER)

        assert can_delete(reader, Resource(ResourceKind.SUGGESTION, owner_id=reader.id)) is False


class TestUserPermissions:
    """Tests for account management."""

    def test_user_updates_only_own_profile(self, make_user):
        admin = make_user(UserRole.ADMIN)

        assert can_update(admin, Resource(ResourceKind.USER, owner_id=admin.id)) is True
        assert can_update(admin, Resource(ResourceKind.USER, owner_id=uuid4())) is False

    def test_delete_account(self, make_user):
        reader = make_user(UserRole.READER)
        moderator = make_user(UserRole.MODERATOR)
        admin = make_user(UserRole.ADMIN)
        other = Resource(ResourceKind.USER, owner_id=uuid4())

        assert can_delete(reader, Resource(ResourceKind.USER, owner_id=reader.id)) is True
        assert can_delete(reader, other) is False
        assert can_delete(moderator, other) is False
        assert can_delete(admin, other) is True

    @pytest.mark.parametrize(
        ("role", "allowed"),
        [
            (UserRole.ADMIN, True),
            (UserRole.MODERATOR, False),
            (UserRole.WRITER, False),
            (UserRole.READER, False),
        ],
    )
    def test_ban_and_roles_are_admin_only(self, make_user, role, allowed):
        actor = make_user(role)

        assert can_ban(actor) is allowed
        assert can_manage_roles(actor) is allowed


class TestDecisionTable:
    """Tests for is_allowed itself."""

    def test_missing_rule_is_denied(self, make_user):
        """Pairs without an entry, like banning a comment, are denied even for admins."""
        assert is_allowed(make_user(UserRole.ADMIN), Action.BAN, ResourceKind.COMMENT) is False

    def test_owner_rule_needs_owner_id(self, make_user):
        assert is_allowed(make_user(UserRole.READER), Action.UPDATE, ResourceKind.COMMENT) is False

    @pytest.mark.parametrize(
        ("role", "moderates"),
        [
            (UserRole.ADMIN, True),
            (UserRole.MODERATOR, True),
            (UserRole.WRITER, False),
            (UserRole.READER, False),
            (UserRole.BANNED, False),
        ],
    )
    def test_can_moderate(self, make_user, role, moderates):
        assert can_moderate(make_user(role)) is moderates
