"""Three-screen navigation state machine."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ...infra.logging import get_logger

__all__ = [
    "NavigationController",
    "Route",
    "Screen",
]

logger = get_logger(__name__)


class Screen(str, Enum):
    AUTHENTICATION = "authentication"
    HOME = "home"
    WRITE = "write"


@dataclass(frozen=True)
class Route:
    """A navigation state; ``entry_id`` is only meaningful on WRITE."""

    screen: Screen
    entry_id: Optional[str] = None

    @property
    def path(self) -> str:
        if self.screen is Screen.WRITE and self.entry_id:
            return f"{self.screen.value}?entry_id={self.entry_id}"
        return self.screen.value


AUTHENTICATION_ROUTE = Route(Screen.AUTHENTICATION)
HOME_ROUTE = Route(Screen.HOME)

RouteListener = Callable[[Route, Route], None]


class NavigationController:
    """Routes between Authentication, Home and Write.

    Transition methods return ``True`` when they moved and ``False`` when
    the call is not legal from the current route, in which case nothing
    changes.
    """

    def __init__(self) -> None:
        self._history: List[Route] = [AUTHENTICATION_ROUTE]
        self._listeners: List[RouteListener] = []
        self._screen_tasks: List[asyncio.Future] = []

    @property
    def current(self) -> Route:
        return self._history[-1]

    @property
    def history(self) -> tuple[Route, ...]:
        return tuple(self._history)

    def add_listener(self, listener: RouteListener) -> None:
        self._listeners.append(listener)

    def attach_task(self, task: asyncio.Future) -> None:
        """Tie a side-effect task to the current screen's lifetime."""

        self._screen_tasks = [t for t in self._screen_tasks if not t.done()]
        self._screen_tasks.append(task)

    def on_authenticated(self) -> bool:
        if self.current.screen is not Screen.AUTHENTICATION:
            return self._ignored("on_authenticated")
        return self._push(HOME_ROUTE)

    def open_new_entry(self) -> bool:
        if self.current.screen is not Screen.HOME:
            return self._ignored("open_new_entry")
        return self._push(Route(Screen.WRITE))

    def open_entry(self, entry_id: str) -> bool:
        if self.current.screen is not Screen.HOME or not entry_id:
            return self._ignored("open_entry")
        return self._push(Route(Screen.WRITE, entry_id=entry_id))

    def navigate_back(self) -> bool:
        return self._pop_write("navigate_back")

    def on_saved(self) -> bool:
        return self._pop_write("on_saved")

    def on_deleted(self) -> bool:
        return self._pop_write("on_deleted")

    def on_signed_out(self) -> bool:
        if self.current.screen is not Screen.HOME:
            return self._ignored("on_signed_out")
        self.reset()
        return True

    def reset(self) -> None:
        """Drop all history and show Authentication, from any route."""

        previous = self.current
        self._cancel_screen_tasks()
        self._history = [AUTHENTICATION_ROUTE]
        if previous != AUTHENTICATION_ROUTE:
            self._notify(previous, AUTHENTICATION_ROUTE)

    def _pop_write(self, action: str) -> bool:
        if self.current.screen is not Screen.WRITE:
            return self._ignored(action)
        previous = self._history.pop()
        self._cancel_screen_tasks()
        if not self._history or self.current != HOME_ROUTE:
            self._history.append(HOME_ROUTE)
        self._notify(previous, self.current)
        return True

    def _push(self, route: Route) -> bool:
        previous = self.current
        self._cancel_screen_tasks()
        self._history.append(route)
        self._notify(previous, route)
        return True

    def _cancel_screen_tasks(self) -> None:
        tasks, self._screen_tasks = self._screen_tasks, []
        for task in tasks:
            if not task.done():
                task.cancel()
                logger.debug("navigation_screen_task_cancelled")

    def _notify(self, previous: Route, current: Route) -> None:
        logger.info(
            "navigation_transition",
            extra={"from_route": previous.path, "to_route": current.path},
        )
        for listener in list(self._listeners):
            listener(previous, current)

    def _ignored(self, action: str) -> bool:
        logger.debug(
            "navigation_transition_ignored",
            extra={"action": action, "route": self.current.path},
        )
        return False
