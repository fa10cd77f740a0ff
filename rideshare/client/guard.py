"""
Access control for client views, in two independent layers:

1. ``AccessGuard`` -- authentication only.  An unauthenticated caller is
   redirected to the fallback route; anyone signed in gets the view.
2. ``RoleScope`` -- per-view mode checks (driver mode vs passenger mode),
   applied by each view itself.

The guard does not look at roles: a passenger reaching a driver view is
signed in, so it renders, and that view decides what to show.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar, Union

from rideshare.client.auth import AuthService
from rideshare.config import settings
from rideshare.domain.enums import Role

T = TypeVar("T")


@dataclass(frozen=True)
class Redirect:
    to: str


class AccessGuard:
    def __init__(self, auth: AuthService, fallback: Optional[str] = None):
        self.auth = auth
        self.fallback = fallback or settings.login_route

    def allows(self) -> bool:
        return self.auth.is_authenticated

    def render(self, view: Callable[..., T], *args, **kwargs) -> Union[T, Redirect]:
        if not self.allows():
            return Redirect(self.fallback)
        return view(*args, **kwargs)

    def protect(self, view: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator form of ``render``; works for sync and async views."""
        if inspect.iscoroutinefunction(view):

            @functools.wraps(view)
            async def async_wrapper(*args, **kwargs):
                if not self.allows():
                    return Redirect(self.fallback)
                return await view(*args, **kwargs)

            return async_wrapper

        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            return self.render(view, *args, **kwargs)

        return wrapper


class RoleScope:
    """Which mode a view is meant for."""

    def __init__(self, mode: Role):
        self.mode = Role(mode)

    def matches(self, auth: AuthService) -> bool:
        if self.mode is Role.DRIVER:
            return auth.is_in_driver_mode
        return auth.is_in_passenger_mode

    def select(
        self,
        auth: AuthService,
        view: Callable[[], T],
        otherwise: Callable[[], T],
    ) -> T:
        return view() if self.matches(auth) else otherwise()


DRIVER_MODE = RoleScope(Role.DRIVER)
PASSENGER_MODE = RoleScope(Role.PASSENGER)
