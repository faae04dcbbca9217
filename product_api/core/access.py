"""
Access checks delegated to an external authorizer.

Policy evaluation is not done here. An ``Authorizer`` answers whether a
capability (``product:find``, ``product:update``, ...) may be exercised and
returns an ``AccessDecision``. ``IntercomAuthorizer`` asks over the bus: it
emits ``check:access`` with the capability tag and a continuation, then waits
for a listener to call that continuation with a bool or an AccessDecision.
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

import structlog

from .intercom import Intercom

__all__ = [
    "CHECK_ACCESS_EVENT",
    "AccessDecision",
    "AllowAllAuthorizer",
    "Authorizer",
    "IntercomAuthorizer",
]

logger = structlog.get_logger(__name__)

CHECK_ACCESS_EVENT = "check:access"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an access check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str | None = None) -> "AccessDecision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


class Authorizer(Protocol):
    async def check(self, capability: str) -> AccessDecision: ...


class AllowAllAuthorizer:
    """Authorizer used when access checks are switched off."""

    async def check(self, capability: str) -> AccessDecision:
        return AccessDecision.allow()


class IntercomAuthorizer:
    """Ask whoever listens on ``check:access`` for a decision.

    Args:
        intercom: Bus to emit the check on
        deny_without_listener: Decision when nobody listens. Defaults to allow,
            which keeps a host without an access module usable.
    """

    def __init__(self, intercom: Intercom, deny_without_listener: bool = False) -> None:
        self.intercom = intercom
        self.deny_without_listener = deny_without_listener

    async def check(self, capability: str) -> AccessDecision:
        if not self.intercom.listener_count(CHECK_ACCESS_EVENT):
            if self.deny_without_listener:
                return AccessDecision.deny("No access check listener registered")
            return AccessDecision.allow()

        future: asyncio.Future[AccessDecision] = asyncio.get_running_loop().create_future()

        def continuation(decision: bool | AccessDecision) -> None:
            # First answer wins when several listeners respond
            if future.done():
                return
            if not isinstance(decision, AccessDecision):
                decision = AccessDecision(allowed=bool(decision))
            future.set_result(decision)

        self.intercom.emit(CHECK_ACCESS_EVENT, capability, continuation)
        decision = await future
        logger.debug("access_checked", capability=capability, allowed=decision.allowed)
        return decision
