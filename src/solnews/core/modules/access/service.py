from solnews.core.core import Service
from solnews.core.modules.access import policy
from solnews.core.modules.access.policy import Resource, ResourceKind
from solnews.core.modules.session.models import AuthToken
from solnews.core.modules.user.models import User
from solnews.errors import AccessDeniedError


class AccessService(Service):
    """Turns policy decisions into AccessDeniedError for the App facade.

    Callers resolve the target first so a missing resource is reported as
    NotFoundError before any permission check.
    """

    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def get_viewer(self, auth_token: AuthToken | None) -> User | None:
        """Resolve an optional token; anonymous readers get None."""
        if auth_token is None:
            return None
        return await self.ensure_authenticated(auth_token)

    async def ensure_admin(self, auth_token: AuthToken) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = await self.ensure_authenticated(auth_token)
        if not policy.can_manage_roles(user):
            raise AccessDeniedError("Admin privileges required")
        return user

    def ensure_can_create(self, actor: User, kind: ResourceKind) -> None:
        if not policy.can_create(actor, kind):
            raise AccessDeniedError(f"Not allowed to create {kind}")

    def ensure_can_update(self, actor: User, resource: Resource) -> None:
        if not policy.can_update(actor, resource):
            raise AccessDeniedError(f"Not allowed to update this {resource.kind}")

    def ensure_can_delete(self, actor: User, resource: Resource) -> None:
        if not policy.can_delete(actor, resource):
            raise AccessDeniedError(f"Not allowed to delete this {resource.kind}")

    def ensure_can_ban(self, actor: User) -> None:
        if not policy.can_ban(actor):
            raise AccessDeniedError("Admin privileges required")
