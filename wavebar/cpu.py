"""A module showing processor load, usage and frequency."""

from __future__ import annotations

import math
import os
import re
import time
from pathlib import Path
from typing import Any, Callable

from .module import ALabel

STAT_PATH = "/proc/stat"
CPUINFO_PATH = "/proc/cpuinfo"
CPUFREQ_DIR = "/sys/devices/system/cpu/cpufreq"
FREQUENCY_FILES = ("cpuinfo_min_freq", "cpuinfo_max_freq")

_STRTOL = re.compile(r"\s*([+-]?\d+)")


def _strtol(text: str) -> int:
    match = _STRTOL.match(text)
    return int(match.group(1)) if match else 0


def parse_cpuinfo(text: str) -> list[tuple[int, int]]:
    """Return ``(idle, total)`` times for the summary line and each core.

    Reading stops at the first line that is not a ``cpu`` line.
    """
    result: list[tuple[int, int]] = []
    for line in text.splitlines():
        if not line.startswith("cpu"):
            break
        times: list[int] = []
        for token in line[5:].split():
            if not token.isdigit():
                break
            times.append(int(token))
        if len(times) >= 4:
            result.append((times[3], sum(times)))
        else:
            result.append((0, 0))
    return result


def parse_cpu_frequencies(cpuinfo_text: str, cpufreq_dir: str | os.PathLike | None = None) -> list[float]:
    """Return core frequencies in MHz, falling back to the cpufreq policy limits."""
    frequencies = [
        float(_strtol(line[line.find(":") + 2 :]))
        for line in cpuinfo_text.splitlines()
        if line.startswith("cpu MHz")
    ]
    if frequencies or cpufreq_dir is None:
        return frequencies
    directory = Path(cpufreq_dir)
    if not directory.exists():
        return frequencies
    for entry in sorted(directory.iterdir()):
        for name in FREQUENCY_FILES:
            path = entry / name
            if not path.exists():
                continue
            try:
                first_line = path.read_text().splitlines()[:1]
            except OSError:
                continue
            value = _strtol(first_line[0]) if first_line else 0
            frequencies.append(value / 1000)
    return frequencies


class Cpu(ALabel):
    """Shows load average, total and per-core usage, and frequencies."""

    def __init__(
        self,
        id: str,
        config: Any,
        stat_path: str | os.PathLike = STAT_PATH,
        cpuinfo_path: str | os.PathLike = CPUINFO_PATH,
        cpufreq_dir: str | os.PathLike | None = CPUFREQ_DIR,
        loadavg: Callable[[], tuple[float, float, float]] = os.getloadavg,
    ) -> None:
        super().__init__(config, "cpu", id, "{usage}%", 10)
        self.stat_path = Path(stat_path)
        self.cpuinfo_path = Path(cpuinfo_path)
        self.cpufreq_dir = cpufreq_dir
        self.loadavg = loadavg
        self.prev_times: list[tuple[int, int]] = []
        self.sample_delay = 0.1

    def _read(self, path: Path) -> str:
        try:
            return path.read_text()
        except OSError as exc:
            raise RuntimeError(f"Can't open {path}") from exc

    def get_cpu_load(self) -> float:
        """One-minute load average rounded up to two decimals."""
        try:
            load = self.loadavg()[0]
        except OSError as exc:
            raise RuntimeError("Can't get Cpu load") from exc
        return math.ceil(load * 100.0) / 100.0

    def get_cpu_usage(self) -> tuple[list[int], str]:
        """Usage percentages since the last call, total first, with a tooltip."""
        if not self.prev_times:
            self.prev_times = parse_cpuinfo(self._read(self.stat_path))
            time.sleep(self.sample_delay)
        current = parse_cpuinfo(self._read(self.stat_path))
        usage: list[int] = []
        tooltip_lines: list[str] = []
        for index, ((idle, total), (prev_idle, prev_total)) in enumerate(
            zip(current, self.prev_times)
        ):
            delta_idle = idle - prev_idle
            delta_total = total - prev_total
            if delta_total == 0:
                value = 0
            else:
                value = max(0, min(0xFFFF, int(100 * (1 - delta_idle / delta_total))))
            if index == 0:
                tooltip_lines.append(f"Total: {value}%")
            else:
                tooltip_lines.append(f"Core{index - 1}: {value}%")
            usage.append(value)
        self.prev_times = current
        return usage, "\n".join(tooltip_lines)

    def get_cpu_frequency(self) -> tuple[float, float, float]:
        """Return ``(max, min, average)`` frequencies in GHz, rounded up to two decimals."""
        frequencies = parse_cpu_frequencies(self._read(self.cpuinfo_path), self.cpufreq_dir)
        if not frequencies:
            return 0.0, 0.0, 0.0
        average = sum(frequencies) / len(frequencies)

        def ghz(mhz: float) -> float:
            return math.ceil(mhz / 10.0) / 100.0

        return ghz(max(frequencies)), ghz(min(frequencies)), ghz(average)

    def update(self) -> None:
        load = self.get_cpu_load()
        usage, tooltip = self.get_cpu_usage()
        max_frequency, min_frequency, avg_frequency = self.get_cpu_frequency()
        if self.tooltip_enabled():
            self.tooltip = tooltip
        total = usage[0] if usage else 0
        state = self.get_state(total)
        fmt = self.format
        state_format = self.config.get("format-" + state) if state else None
        if isinstance(state_format, str):
            fmt = state_format

        if not fmt:
            self.visible = False
        else:
            self.visible = True
            icons = [state]
            args: dict[str, Any] = {
                "load": load,
                "usage": total,
                "icon": self.get_icon(total, icons),
                "max_frequency": max_frequency,
                "min_frequency": min_frequency,
                "avg_frequency": avg_frequency,
            }
            for core, value in enumerate(usage[1:]):
                args[f"usage{core}"] = value
                args[f"icon{core}"] = self.get_icon(value, icons)
            try:
                self.text = fmt.format(**args)
            except (KeyError, IndexError, ValueError) as exc:
                raise ValueError(f"Invalid format {fmt!r}: {exc}") from exc
        super().update()