"""Role and ownership based permissions.

Every mutation permission lives in one decision table keyed by
(resource kind, action). A rule names the roles that may act on any
resource of that kind and whether the owner may act on their own one.
Banned actors are denied every mutation, including on what they own.

All functions are pure: they read already-loaded actor and resource
fields and perform no I/O.
"""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from solnews.core.modules.user.models import User, UserRole


class ResourceKind(StrEnum):
    COMMENT = "comment"
    ARTICLE = "article"
    SUGGESTION = "suggestion"
    USER = "user"


class Action(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BAN = "ban"


@dataclass(frozen=True)
class Rule:
    roles: frozenset[UserRole]
    owner: bool = False


@dataclass(frozen=True)
class Resource:
    """What the gate needs to know about a target: its kind and who owns it.

    For users the owner is the account itself.
    """

    kind: ResourceKind
    owner_id: UUID


STAFF = frozenset({UserRole.ADMIN, UserRole.MODERATOR})
ADMIN_ONLY = frozenset({UserRole.ADMIN})
NOBODY: frozenset[UserRole] = frozenset()

RULES: dict[tuple[ResourceKind, Action], Rule] = {
    (ResourceKind.COMMENT, Action.CREATE): Rule(
        frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.WRITER, UserRole.READER})
    ),
    (ResourceKind.COMMENT, Action.UPDATE): Rule(NOBODY, owner=True),
    (ResourceKind.COMMENT, Action.DELETE): Rule(STAFF, owner=True),
    (ResourceKind.ARTICLE, Action.CREATE): Rule(frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.WRITER})),
    (ResourceKind.ARTICLE, Action.UPDATE): Rule(STAFF),
    (ResourceKind.ARTICLE, Action.DELETE): Rule(STAFF),
    (ResourceKind.SUGGESTION, Action.CREATE): Rule(
        frozenset({UserRole.ADMIN, UserRole.MODERATOR, UserRole.WRITER, UserRole.READER})
    ),
    (ResourceKind.SUGGESTION, Action.UPDATE): Rule(STAFF),
    (ResourceKind.SUGGESTION, Action.DELETE): Rule(STAFF),
    (ResourceKind.USER, Action.UPDATE): Rule(NOBODY, owner=True),
    (ResourceKind.USER, Action.DELETE): Rule(ADMIN_ONLY, owner=True),
    (ResourceKind.USER, Action.BAN): Rule(ADMIN_ONLY),
}


def is_allowed(actor: User, action: Action, kind: ResourceKind, owner_id: UUID | None = None) -> bool:
    """Look up the decision table. Pairs without a rule are denied."""
    if actor.role == UserRole.BANNED:
        return False
    rule = RULES.get((kind, action))
    if rule is None:
        return False
    if actor.role in rule.roles:
        return True
    return rule.owner and owner_id is not None and actor.id == owner_id


def can_create(actor: User, kind: ResourceKind) -> bool:
    return is_allowed(actor, Action.CREATE, kind)


def can_update(actor: User, resource: Resource) -> bool:
    return is_allowed(actor, Action.UPDATE, resource.kind, resource.owner_id)


def can_delete(actor: User, resource: Resource) -> bool:
    return is_allowed(actor, Action.DELETE, resource.kind, resource.owner_id)


def can_ban(actor: User) -> bool:
    return is_allowed(actor, Action.BAN, ResourceKind.USER)


def can_moderate(actor: User) -> bool:
    """Whether the actor holds a staff role (moderator or admin)."""
    return actor.role in STAFF


def can_manage_roles(actor: User) -> bool:
    return actor.role == UserRole.ADMIN
