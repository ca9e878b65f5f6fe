"""A module showing the charge and state of the system's batteries."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

from .battery_info import (
    BatteryTotals,
    calculated_capacity,
    read_battery,
    time_remaining,
)
from .module import ALabel, _is_uint

log = logging.getLogger(__name__)

DATA_DIR = "/sys/class/power_supply"
DEFAULT_TIME_FORMAT = "{H} h {M} min"
_BATTERY_FILES = ("uevent", "status", "type")


def _read_text(path: Path) -> str:
    try:
        return path.read_text()
    except (OSError, UnicodeDecodeError):
        return ""


def _first_token(path: Path) -> str:
    parts = _read_text(path).split()
    return parts[0] if parts else ""


def _first_line(path: Path) -> str:
    return _read_text(path).split("\n", 1)[0]


def _read_online(path: Path) -> bool:
    token = _first_token(path)
    if token.lstrip("+-").isdigit():
        return int(token) != 0
    return False


def _format(template: str, *args: Any, **kwargs: Any) -> str:
    try:
        return template.format(*args, **kwargs)
    except (KeyError, IndexError, ValueError) as exc:
        raise ValueError(f"Invalid format {template!r}: {exc}") from exc


def _round_half_up(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class Battery(ALabel):
    """Shows capacity, status and time remaining over all system batteries.

    Batteries and the power adapter are found in ``data_dir``, a directory of
    power supplies laid out like the kernel's power-supply class.
    """

    def __init__(self, id: str, config: Any, data_dir: str | Path = DATA_DIR) -> None:
        super().__init__(config, "battery", id, "{capacity}%", 60)
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise RuntimeError("Could not watch for battery plug/unplug")
        self.batteries: list[Path] = []
        self.adapter: Path | None = None
        self.old_status = ""
        self._warn_first_time = True
        self.refresh_batteries()

    def refresh_batteries(self) -> None:
        """Rescan the power supplies for batteries and the adapter."""
        bat = self.config.get("bat")
        bat_defined = isinstance(bat, str)
        adapter = self.config.get("adapter")
        adapter_defined = isinstance(adapter, str)

        try:
            entries = sorted(self.data_dir.iterdir())
        except OSError as exc:
            raise RuntimeError(str(exc)) from exc

        found: list[Path] = []
        for node in entries:
            if not node.is_dir():
                continue
            name = node.name
            if (
                (not bat_defined or name == bat)
                and ((node / "capacity").exists() or (node / "charge_now").exists())
                and all((node / f).exists() for f in _BATTERY_FILES)
                and _first_token(node / "type") == "Battery"
            ):
                # Non-system supplies are ignored unless asked for by name.
                if (
                    not bat_defined
                    and (node / "scope").exists()
                    and _first_token(node / "scope").lower() == "device"
                ):
                    continue
                found.append(node)
            if (not adapter_defined or name == adapter) and (
                (node / "online").exists() or (node / "status").exists()
            ):
                self.adapter = node

        if self._warn_first_time and not found:
            if bat_defined:
                log.warning("No battery named %s", bat)
            else:
                log.warning("No batteries.")
            self._warn_first_time = False

        self.batteries = found

    def get_infos(self) -> tuple[int, float, str, float]:
        """Return capacity (percent), hours remaining, status and power (W)."""
        try:
            totals = BatteryTotals()
            for path in self.batteries:
                totals.add(read_battery(path).derive())
            status = totals.status

            # "Plugged" takes priority over "Not charging", e.g. at a charge threshold.
            if self.adapter is not None and status in ("Discharging", "Not charging"):
                online = _read_online(self.adapter / "online")
                adapter_status = _first_line(self.adapter / "status")
                if online and adapter_status != "Discharging":
                    status = "Plugged"

            remaining = time_remaining(status, totals)

            design = self.config.get("design-capacity")
            full_at = self.config.get("full-at")
            capacity = calculated_capacity(
                totals,
                len(self.batteries),
                design_capacity=design if isinstance(design, bool) else False,
                full_at=int(full_at) if _is_uint(full_at) else None,
            )
            cap = _round_half_up(capacity)
            # Some batteries stay stuck at "Charging" when full.
            if cap == 100 and status == "Charging":
                status = "Full"
            return cap, remaining, status, (totals.power or 0) / 1e6
        except Exception as exc:  # unreadable batteries must not break the bar
            log.error("Battery: %s", exc)
            return 0, 0.0, "Unknown", 0.0

    def get_adapter_status(self, capacity: int) -> str:
        """Status guessed from the adapter when the batteries report none."""
        if self.adapter is None:
            return "Unknown"
        online = _read_online(self.adapter / "online")
        status = _first_line(self.adapter / "status")
        if capacity == 100:
            return "Full"
        if online and status != "Discharging":
            return "Plugged"
        return "Discharging"

    def format_time_remaining(self, hours_remaining: float) -> str:
        """Format a time in hours; zero hours and minutes give an empty string."""
        hours_remaining = abs(hours_remaining)
        full_hours = int(hours_remaining)
        minutes = int(60 * (hours_remaining - full_hours))
        if full_hours == 0 and minutes == 0:
            return ""
        template = self.config.get("format-time")
        if not isinstance(template, str):
            template = DEFAULT_TIME_FORMAT
        return _format(template, H=full_hours, M=minutes, m=f"{minutes:02d}")

    def _pick(self, prefix: str, status: str, state: str) -> str | None:
        candidates = []
        if state:
            candidates.append(f"{prefix}-{status}-{state}")
        candidates.append(f"{prefix}-{status}")
        if state:
            candidates.append(f"{prefix}-{state}")
        for key in candidates:
            value = self.config.get(key)
            if isinstance(value, str):
                return value
        return None

    def update(self) -> None:
        if not self.batteries:
            self.visible = False
            return
        capacity, remaining, status, power = self.get_infos()
        if status == "Unknown":
            status = self.get_adapter_status(capacity)
        status_pretty = status
        status = status.lower().replace(" ", "-")
        state = self.get_state(capacity, True)
        remaining_text = self.format_time_remaining(remaining)

        if self.tooltip_enabled():
            if remaining != 0:
                direction = "empty" if remaining > 0 else "full"
                default_text = f"Time to {direction}: {remaining_text}"
            else:
                default_text = status_pretty
            tooltip_format = self._pick("tooltip-format", status, state)
            if tooltip_format is None:
                generic = self.config.get("tooltip-format")
                tooltip_format = generic if isinstance(generic, str) else "{timeTo}"
            self.tooltip = _format(
                tooltip_format,
                timeTo=default_text,
                power=power,
                capacity=capacity,
                time=remaining_text,
            )

        if self.old_status:
            self.classes.discard(self.old_status)
        self.classes.add(status)
        self.old_status = status

        chosen = self._pick("format", status, state)
        fmt = chosen if chosen is not None else self.format
        if not fmt:
            self.visible = False
        else:
            self.visible = True
            icons = [f"{status}-{state}", status, state]
            self.text = _format(
                fmt,
                capacity=capacity,
                power=power,
                icon=self.get_icon(capacity, icons),
                time=remaining_text,
            )
        super().update()