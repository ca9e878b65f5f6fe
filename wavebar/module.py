"""Base classes shared by all bar modules: event handling, labels and icons."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

log = logging.getLogger(__name__)

ONCE_INTERVAL = 100000000


class ScrollDirection(Enum):
    NONE = "none"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ScrollEvent:
    """A scroll; a direction of ``None`` marks a smooth scroll carrying deltas."""

    direction: ScrollDirection | None = None
    delta_x: float = 0.0
    delta_y: float = 0.0


@dataclass(frozen=True)
class ButtonEvent:
    """A button press; ``presses`` is 1, 2 or 3 for single, double, triple clicks."""

    button: int
    presses: int = 1


_BUTTON_SUFFIXES = {1: "", 2: "-middle", 3: "-right", 8: "-backward", 9: "-forward"}
_PRESS_PREFIXES = {1: "on-click", 2: "on-double-click", 3: "on-triple-click"}

EVENT_MAP: dict[tuple[int, int], str] = {
    (button, presses): prefix + suffix
    for button, suffix in _BUTTON_SUFFIXES.items()
    for presses, prefix in _PRESS_PREFIXES.items()
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_uint(value: Any) -> bool:
    if not _is_number(value):
        return False
    return value >= 0 and value < 2**32 and float(value).is_integer()


def _is_int(value: Any) -> bool:
    if not _is_number(value):
        return False
    return -(2**31) <= value < 2**31 and float(value).is_integer()


class AModule:
    """A bar module: maps clicks and scrolls to actions and user commands.

    Commands the module wants run are queued in ``pending_commands``; the
    callables in ``callbacks`` are called whenever the module asks to be redrawn.
    """

    def __init__(
        self,
        config: Any,
        name: str,
        id: str = "",
        enable_click: bool = False,
        enable_scroll: bool = False,
    ) -> None:
        self.name = name
        self.config: dict = config if isinstance(config, dict) else {}
        self.actions: dict[str, str] = {}
        self.pending_commands: list[str] = []
        self.callbacks: list[Callable[[], None]] = []
        self.visible = True
        self.distance_scrolled_x = 0.0
        self.distance_scrolled_y = 0.0

        actions = self.config.get("actions")
        if isinstance(actions, dict):
            for key, value in actions.items():
                if isinstance(value, str):
                    self.actions[key] = value
                    enable_click = enable_scroll = True
                else:
                    log.warning("Wrong actions section configuration. See config by index: %s", key)
        elif isinstance(actions, list):
            for index, _ in enumerate(actions):
                log.warning("Wrong actions section configuration. See config by index: %s", index)

        self.click_enabled = enable_click or any(
            isinstance(self.config.get(event), str) for event in EVENT_MAP.values()
        )
        self.scroll_enabled = (
            enable_scroll
            or isinstance(self.config.get("on-scroll-up"), str)
            or isinstance(self.config.get("on-scroll-down"), str)
        )

    def _emit(self) -> None:
        for callback in list(self.callbacks):
            callback()

    def _run(self, command: str) -> None:
        self.pending_commands.append(command)

    def update(self) -> None:
        """Queue the user's ``on-update`` command, if any."""
        command = self.config.get("on-update")
        if isinstance(command, str):
            self._run(command)

    def do_action(self, name: str) -> None:
        """Translate an event name into the configured module action and run it."""
        if not name:
            return
        action = self.actions.get(name)
        if action is not None and action != name:
            self.do_action(action)

    def handle_toggle(self, event: ButtonEvent) -> bool:
        """Run the action and user command bound to a button press."""
        event_name = EVENT_MAP.get((event.button, event.presses), "")
        if event_name:
            AModule.do_action(self, event_name)
        command = self.config.get(event_name) if event_name else None
        if isinstance(command, str) and command:
            self._run(command)
        self._emit()
        return True

    def get_scroll_dir(self, event: ScrollEvent) -> ScrollDirection:
        """Return the scroll direction, accumulating smooth scroll deltas."""
        if event.direction is not None:
            return event.direction

        self.distance_scrolled_y += event.delta_y
        self.distance_scrolled_x += event.delta_x
        threshold = self.config.get("smooth-scrolling-threshold")
        threshold = float(threshold) if _is_number(threshold) else 0.0

        direction = ScrollDirection.NONE
        if self.distance_scrolled_y < -threshold:
            direction = ScrollDirection.UP
        elif self.distance_scrolled_y > threshold:
            direction = ScrollDirection.DOWN
        elif self.distance_scrolled_x > threshold:
            direction = ScrollDirection.RIGHT
        elif self.distance_scrolled_x < -threshold:
            direction = ScrollDirection.LEFT

        if direction in (ScrollDirection.UP, ScrollDirection.DOWN):
            self.distance_scrolled_y = 0.0
        elif direction in (ScrollDirection.LEFT, ScrollDirection.RIGHT):
            self.distance_scrolled_x = 0.0
        return direction

    def handle_scroll(self, event: ScrollEvent) -> bool:
        """Run the action and user command bound to scrolling up or down."""
        direction = self.get_scroll_dir(event)
        event_name = {
            ScrollDirection.UP: "on-scroll-up",
            ScrollDirection.DOWN: "on-scroll-down",
        }.get(direction, "")
        AModule.do_action(self, event_name)
        command = self.config.get(event_name)
        if isinstance(command, str):
            self._run(command)
        self._emit()
        return True

    def tooltip_enabled(self) -> bool:
        value = self.config.get("tooltip")
        return value if isinstance(value, bool) else True

    def refresh(self, signal: int) -> bool:
        """React to a real-time signal; return whether it was handled.

        Plain modules do not listen to signals.
        """
        return False


class ALabel(AModule):
    """A module shown as a single text label."""

    def __init__(
        self,
        config: Any,
        name: str,
        id: str,
        format: str,
        interval: int = 0,
        ellipsize: bool = False,
        enable_click: bool = False,
        enable_scroll: bool = False,
    ) -> None:
        config = config if isinstance(config, dict) else {}
        super().__init__(
            config,
            name,
            id,
            isinstance(config.get("format-alt"), str) or enable_click,
            enable_scroll,
        )
        configured_format = self.config.get("format")
        self.format: str = configured_format if isinstance(configured_format, str) else format
        self.default_format = self.format
        configured_interval = self.config.get("interval")
        if configured_interval == "once":
            self.interval = ONCE_INTERVAL
        elif _is_uint(configured_interval):
            self.interval = int(configured_interval)
        else:
            self.interval = interval
        self.alt = False

        self.label_name = name
        self.classes: set[str] = {id} if id else set()
        self.text = ""
        self.tooltip: str | None = None
        self.max_width_chars = -1
        self.width_chars = -1
        self.ellipsize = False
        self.single_line = False
        self.angle = 0
        self.xalign = 0.5
        self.yalign = 0.5

        max_length = self.config.get("max-length")
        if _is_uint(max_length):
            self.max_width_chars = int(max_length)
            self.ellipsize = self.single_line = True
        elif ellipsize and self.max_width_chars == -1:
            self.ellipsize = self.single_line = True

        min_length = self.config.get("min-length")
        if _is_uint(min_length):
            self.width_chars = int(min_length)

        rotate = self.config.get("rotate")
        if _is_uint(rotate):
            self.angle = int(rotate)

        align = self.config.get("align")
        if _is_number(align):
            if self.angle in (90, 270):
                self.yalign = float(align)
            else:
                self.xalign = float(align)

    def get_icon(self, percentage: int, alt: str | Iterable[str] = "", max: int = 0) -> str:
        """Pick an icon from ``format-icons`` by alternative name(s) and percentage."""
        icons = self.config.get("format-icons")
        if isinstance(icons, dict):
            alts = [alt] if isinstance(alt, str) else list(alt)
            chosen = next(
                (a for a in alts if a and isinstance(icons.get(a), (str, list))),
                "default",
            )
            icons = icons.get(chosen)
        if isinstance(icons, list) and icons:
            size = len(icons)
            step = (max if max else 100) // size
            index = percentage // step if step else size - 1
            icons = icons[min(index, size - 1)]
        return icons if isinstance(icons, str) else ""

    def handle_toggle(self, event: ButtonEvent) -> bool:
        """Switch between ``format`` and ``format-alt`` on the configured button."""
        click = self.config.get("format-alt-click")
        if _is_uint(click) and event.button == click:
            self.alt = not self.alt
            alt_format = self.config.get("format-alt")
            if self.alt and isinstance(alt_format, str):
                self.format = alt_format
            else:
                self.format = self.default_format
        return super().handle_toggle(event)

    def get_state(self, value: int, lesser: bool = False) -> str:
        """Return the configured state matching ``value`` and set its style class."""
        states_config = self.config.get("states")
        if not isinstance(states_config, dict):
            return ""
        states = [(key, int(level)) for key, level in states_config.items() if _is_uint(level)]
        states.sort(key=lambda item: item[1], reverse=not lesser)
        valid_state = ""
        for state, level in states:
            matches = value <= level if lesser else value >= level
            if matches and not valid_state:
                self.classes.add(state)
                valid_state = state
            else:
                self.classes.discard(state)
        return valid_state


class AIconLabel(ALabel):
    """A label preceded by an optional icon."""

    SPACING = 8

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.icon_visible = True

    def icon_enabled(self) -> bool:
        value = self.config.get("icon")
        return value if isinstance(value, bool) else False

    def update(self) -> None:
        self.icon_visible = self.icon_visible and self.icon_enabled()
        super().update()