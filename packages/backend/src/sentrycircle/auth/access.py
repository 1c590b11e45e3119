"""Access control over the Device → Child → Family chain.

Learn: rules are evaluated in order, the first match decides, and the
default is deny:

1. Self-ownership — the record's userId is the caller → allow.
   (A child account linked to a Child record may read it and enroll
   devices under it; updating the Child is for guardians only.)
2. Guardian-of-child — Device/Child resolve to their Family; caller is
   one of its guardians → allow.
3. Guardian-of-family — Family resource; caller is a guardian → allow.
4. Commands — only rule 2 counts. A device's own token can read its
   commands but can never create one.
5. Any record missing along the chain → deny. A dangling reference
   never grants access.

Each step is a single store read, done sequentially and short-circuited
on the first miss. Store failures propagate as StoreUnavailable; they
are not a deny.
"""

from enum import Enum
from typing import Union

import structlog

from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.store.kv import KVStore
from sentrycircle.store.lookup import Found, find_child, find_family
from sentrycircle.store.records import Child, Device, Family

logger = structlog.get_logger()

Resource = Union[Device, Child, Family]


class Action(str, Enum):
    READ = "read"
    UPDATE = "update"
    ENROLL = "enroll"  # register a device under a child
    COMMAND = "command"  # issue a command to a device


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class AccessDenied(Exception):
    """Raised by AccessControl.require when the caller is not allowed."""

    def __init__(self, resource: Resource, action: Action):
        self.resource = resource
        self.action = action
        super().__init__(
            f"Not allowed to {action.value} {type(resource).__name__.lower()}"
        )


class AccessControl:
    """Decides whether verified claims may act on a resource."""

    def __init__(self, store: KVStore):
        self.store = store

    async def authorize(
        self,
        claims: TokenClaims,
        resource: Resource,
        action: Action = Action.READ,
    ) -> Decision:
        decision = await self._evaluate(claims.user_id, resource, action)
        if decision is Decision.DENY:
            logger.info(
                "access.denied",
                user_id=claims.user_id,
                resource=type(resource).__name__,
                resource_id=resource.id,
                action=action.value,
            )
        return decision

    async def require(
        self,
        claims: TokenClaims,
        resource: Resource,
        action: Action = Action.READ,
    ) -> None:
        """authorize(), raising AccessDenied instead of returning DENY."""
        if await self.authorize(claims, resource, action) is Decision.DENY:
            raise AccessDenied(resource, action)

    # ─── Rules ──────────────────────────────────────────

    async def _evaluate(
        self, user_id: str, resource: Resource, action: Action
    ) -> Decision:
        if action is Action.COMMAND:
            if not isinstance(resource, Device):
                return Decision.DENY
            return await self._guardian_of_child(user_id, resource.child_id)

        if self._owns(user_id, resource, action):
            return Decision.ALLOW

        if isinstance(resource, Device):
            return await self._guardian_of_child(user_id, resource.child_id)
        if isinstance(resource, Child):
            return await self._guardian_of_family(user_id, resource.family_id)
        if isinstance(resource, Family):
            return _decide(resource.is_guardian(user_id))
        return Decision.DENY

    @staticmethod
    def _owns(user_id: str, resource: Resource, action: Action) -> bool:
        owner = getattr(resource, "user_id", None)
        if owner is None or owner != user_id:
            return False
        if isinstance(resource, Child) and action is Action.UPDATE:
            return False
        return True

    async def _guardian_of_child(self, user_id: str, child_id: str) -> Decision:
        child = await find_child(self.store, child_id)
        if not isinstance(child, Found):
            return Decision.DENY
        return await self._guardian_of_family(user_id, child.record.family_id)

    async def _guardian_of_family(self, user_id: str, family_id: str) -> Decision:
        family = await find_family(self.store, family_id)
        if not isinstance(family, Found):
            return Decision.DENY
        return _decide(family.record.is_guardian(user_id))


def _decide(allowed: bool) -> Decision:
    return Decision.ALLOW if allowed else Decision.DENY
