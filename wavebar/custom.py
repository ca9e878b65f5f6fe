"""A module showing the output of a user-provided command."""

from __future__ import annotations

import json
import logging
import math
import signal
from typing import Any

from .module import ALabel, ButtonEvent, ScrollEvent, _is_int, _is_number, _is_uint

log = logging.getLogger(__name__)

SIGRTMIN = int(getattr(signal, "SIGRTMIN", 34))

_MARKUP_ESCAPES = str.maketrans(
    {"&": "&amp;", "<": "&lt;", ">": "&gt;", "'": "&#39;", '"': "&quot;"}
)


def escape_markup(text: str) -> str:
    """Escape text so it can be shown as markup."""
    return text.translate(_MARKUP_ESCAPES)


def _lines(text: str) -> list[str]:
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def _as_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    raise ValueError(f"Value is not convertible to string: {value!r}")


def _lround(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class Custom(ALabel):
    """Shows text, tooltip, classes and a percentage reported by a command.

    The command's output is handed in through :meth:`set_output`; requests to
    run the command again are counted in ``wake_requests``.
    """

    def __init__(self, name: str, id: str, config: Any) -> None:
        super().__init__(config, "custom-" + name, id, "{}")
        self.module_name = name
        self.id = id
        self.exit_code = 0
        self.out = ""
        self.output_text = ""
        self.output_alt = ""
        self.output_tooltip = ""
        self.output_classes: list[str] = []
        self.percentage = 0
        self.wake_requests = 0
        self.continuous = self.interval == 0 and isinstance(self.config.get("exec"), str)
        restart = self.config.get("restart-interval")
        self.restart_interval: int | None = int(restart) if _is_uint(restart) else None

    def set_output(self, exit_code: int, out: str) -> None:
        """Record the latest result of the command."""
        self.exit_code = exit_code
        self.out = out

    def _escape(self) -> bool:
        return self.config.get("escape") is True

    def parse_output_raw(self) -> None:
        """Read text, tooltip and a class from the first three output lines."""
        for index, line in enumerate(_lines(self.out)[:3]):
            if index == 0:
                self.output_text = escape_markup(line) if self._escape() else line
                self.output_tooltip = line
                self.output_classes = []
            elif index == 1:
                self.output_tooltip = line
            else:
                self.output_classes.append(line)

    def parse_output_json(self) -> None:
        """Read text, alt, tooltip, classes and percentage from the first JSON line."""
        self.output_classes = []
        lines = _lines(self.out)
        if not lines:
            return
        parsed = json.loads(lines[0])
        if not isinstance(parsed, dict):
            raise ValueError("Custom module output must be a JSON object")
        text = _as_string(parsed.get("text"))
        alt = _as_string(parsed.get("alt"))
        if self._escape():
            text, alt = escape_markup(text), escape_markup(alt)
        self.output_text = text
        self.output_alt = alt
        self.output_tooltip = _as_string(parsed.get("tooltip"))
        classes = parsed.get("class")
        if isinstance(classes, str):
            self.output_classes.append(classes)
        elif isinstance(classes, list):
            self.output_classes.extend(_as_string(c) for c in classes)
        percentage = parsed.get("percentage")
        if _is_number(percentage):
            self.percentage = _lround(float(percentage))
        else:
            self.percentage = 0

    def _render(self) -> str:
        try:
            return self.format.format(
                self.output_text,
                alt=self.output_alt,
                icon=self.get_icon(self.percentage, self.output_alt),
                percentage=self.percentage,
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid format {self.format!r}: {exc}") from exc

    def update(self) -> None:
        """Redraw the label from the latest output, hiding it when there is nothing to show."""
        runs_command = isinstance(self.config.get("exec"), str) or isinstance(
            self.config.get("exec-if"), str
        )
        if runs_command and (not self.out or self.exit_code != 0):
            self.visible = False
        else:
            if self.config.get("return-type") == "json":
                self.parse_output_json()
            else:
                self.parse_output_raw()
            text = self._render()
            if not text:
                self.visible = False
            else:
                self.text = text
                if self.tooltip_enabled():
                    same = self.output_text == self.output_tooltip
                    self.tooltip = text if same else self.output_tooltip
                self.classes = {c for c in self.classes if c == self.id}
                self.classes.update(self.output_classes)
                self.classes.update(("flat", "text-button"))
                self.visible = True
        super().update()

    def refresh(self, signal: int) -> bool:
        """Ask for the command to run again if ``signal`` is the configured one."""
        offset = self.config.get("signal")
        offset = int(offset) if _is_int(offset) else 0
        if signal == SIGRTMIN + offset:
            self.wake_requests += 1
            return True
        return False

    def _handle_event(self) -> None:
        value = self.config.get("exec-on-event")
        if not isinstance(value, bool) or value:
            self.wake_requests += 1

    def handle_scroll(self, event: ScrollEvent) -> bool:
        result = super().handle_scroll(event)
        self._handle_event()
        return result

    def handle_toggle(self, event: ButtonEvent) -> bool:
        result = super().handle_toggle(event)
        self._handle_event()
        return result