"""Reading battery state from the power-supply class and combining it.

Values are those the kernel reports: µW, µWh, µA, µAh, µV, seconds and
percent. A field that the battery does not report is ``None``. The
arithmetic follows 32-bit unsigned storage, so results wrap the same way the
kernel's counters do.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

_U32 = 0xFFFFFFFF
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Unknown > Full > Not charging > Discharging > Charging
_STATUS_RANK = {"Unknown": 4, "Full": 3, "Not charging": 2, "Discharging": 1}


def _u32(value: int) -> int:
    return value & _U32


def status_gt(a: str, b: str) -> bool:
    """Tell whether status ``a`` ranks above ``b``.

    The order is Unknown > Full > Not charging > Discharging > anything else.
    """
    if a == b:
        return False
    rank_a = _STATUS_RANK.get(a, 0)
    if rank_a == 0:
        return False
    return _STATUS_RANK.get(b, 0) < rank_a


def _read_uint(path: Path) -> Optional[int]:
    """Return the number in ``path``, ``None`` if it is missing, 0 if unreadable."""
    if not path.exists():
        return None
    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError):
        return 0
    match = _LEADING_INT.match(text)
    if not match:
        return 0
    return _u32(int(match.group(1)))


def _read_first_line(path: Path) -> str:
    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError):
        return ""
    return text.split("\n", 1)[0]


@dataclass(frozen=True)
class BatteryReading:
    """What one battery reports, with ``None`` for values it does not provide."""

    status: str = ""
    capacity: Optional[int] = None
    current_now: Optional[int] = None
    time_to_empty_now: Optional[int] = None
    time_to_full_now: Optional[int] = None
    voltage_now: Optional[int] = None
    charge_full: Optional[int] = None
    charge_full_design: Optional[int] = None
    charge_now: Optional[int] = None
    power_now: Optional[int] = None
    energy_now: Optional[int] = None
    energy_full: Optional[int] = None
    energy_full_design: Optional[int] = None

    def derive(self) -> "BatteryReading":
        """Fill in what can be computed from the values that are present.

        Batteries may report current and charge in µA/µAh; these are scaled
        by the voltage to get power and energy.
        """
        capacity = self.capacity
        current = self.current_now
        voltage = self.voltage_now
        charge_full = self.charge_full
        charge_full_design = self.charge_full_design
        charge_now = self.charge_now
        power = self.power_now
        energy_now = self.energy_now
        energy_full = self.energy_full
        energy_full_design = self.energy_full_design

        if voltage is None:
            if power is not None and current:
                voltage = _u32(1000000 * power // current)
            elif energy_full_design is not None and charge_full_design:
                voltage = _u32(1000000 * energy_full_design // charge_full_design)
            elif energy_now is not None:
                if charge_now:
                    voltage = _u32(1000000 * energy_now // charge_now)
                elif capacity is not None and charge_full is not None:
                    charge_now = _u32(charge_full * capacity // 100)
                    if charge_full != 0 and capacity != 0:
                        voltage = _u32(1000000 * energy_now * 100 // charge_full // capacity)
            elif energy_full is not None:
                if charge_full:
                    voltage = _u32(1000000 * energy_full // charge_full)
                elif charge_now is not None and capacity is not None:
                    if capacity != 0:
                        charge_full = _u32(100 * charge_now // capacity)
                    if charge_now != 0:
                        voltage = _u32(10000 * energy_full * capacity // charge_now)

        if capacity is None:
            if charge_now is not None and charge_full:
                capacity = _u32(100 * charge_now // charge_full)
            elif energy_now is not None and energy_full:
                capacity = _u32(100 * energy_now // energy_full)
            elif charge_now is not None and energy_full is not None and voltage is not None:
                if charge_full is None and voltage != 0:
                    charge_full = _u32(1000000 * energy_full // voltage)
                if energy_full != 0:
                    capacity = _u32(charge_now * voltage // 10000 // energy_full)
            elif charge_full is not None and energy_now is not None and voltage is not None:
                if charge_now is None and voltage != 0:
                    charge_now = _u32(1000000 * energy_now // voltage)
                if voltage != 0 and charge_full != 0:
                    capacity = _u32(100 * 1000000 * energy_now // voltage // charge_full)

        if energy_now is None and voltage is not None:
            if charge_now is not None:
                energy_now = _u32(charge_now * voltage // 1000000)
            elif capacity is not None and charge_full is not None:
                charge_now = _u32(capacity * charge_full // 100)
                energy_now = _u32(voltage * capacity * charge_full // 1000000 // 100)
            elif capacity is not None and energy_full:
                if voltage != 0:
                    charge_full = _u32(1000000 * energy_full // voltage)
                    charge_now = _u32(capacity * 10000 * energy_full // voltage)
                energy_now = _u32(capacity * energy_full // 100)

        if energy_full is None and voltage is not None:
            if charge_full is not None:
                energy_full = _u32(charge_full * voltage // 1000000)
            elif charge_now is not None and capacity:
                charge_full = _u32(100 * charge_now // capacity)
                energy_full = _u32(charge_now * voltage // capacity // 10000)
            elif capacity is not None and energy_now:
                if voltage != 0:
                    charge_now = _u32(1000000 * energy_now // voltage)
                if capacity != 0:
                    energy_full = _u32(100 * energy_now // capacity)
                    if voltage != 0:
                        charge_full = _u32(100 * 1000000 * energy_now // voltage // capacity)

        if power is None and voltage is not None and current is not None:
            power = _u32(voltage * current // 1000000)

        if energy_full_design is None and voltage is not None and charge_full_design is not None:
            energy_full_design = _u32(voltage * charge_full_design // 1000000)

        return replace(
            self,
            capacity=capacity,
            voltage_now=voltage,
            charge_full=charge_full,
            charge_now=charge_now,
            power_now=power,
            energy_now=energy_now,
            energy_full=energy_full,
            energy_full_design=energy_full_design,
        )


def read_battery(path: str | Path) -> BatteryReading:
    """Read a battery's power-supply directory."""
    base = Path(path)
    current = _read_uint(base / "current_now")
    if current is None:
        current = _read_uint(base / "current_avg")
    voltage = _read_uint(base / "voltage_now")
    if voltage is None:
        voltage = _read_uint(base / "voltage_avg")
    values = {
        f.name: _read_uint(base / f.name)
        for f in fields(BatteryReading)
        if f.name not in ("status", "current_now", "voltage_now")
    }
    return BatteryReading(
        status=_read_first_line(base / "status"),
        current_now=current,
        voltage_now=voltage,
        **values,
    )


def _add(total: Optional[int], value: Optional[int]) -> Optional[int]:
    if value is None:
        return total
    return _u32((total or 0) + value)


@dataclass
class BatteryTotals:
    """Sums over all batteries, and the lowest-ranking status among them.

    The time to empty or full is that of the last battery reporting it.
    """

    status: str = "Unknown"
    power: Optional[int] = None
    energy: Optional[int] = None
    energy_full: Optional[int] = None
    energy_full_design: Optional[int] = None
    capacity: Optional[int] = None
    time_to_empty: Optional[int] = None
    time_to_full: Optional[int] = None
    count: int = field(default=0)

    def add(self, reading: BatteryReading) -> None:
        """Add a battery's reading, which should already have been derived."""
        if reading.time_to_empty_now is not None:
            self.time_to_empty = reading.time_to_empty_now
        if reading.time_to_full_now is not None:
            self.time_to_full = reading.time_to_full_now
        if status_gt(self.status, reading.status):
            self.status = reading.status
        self.power = _add(self.power, reading.power_now)
        self.energy = _add(self.energy, reading.energy_now)
        self.energy_full = _add(self.energy_full, reading.energy_full)
        self.energy_full_design = _add(self.energy_full_design, reading.energy_full_design)
        self.capacity = _add(self.capacity, reading.capacity)
        self.count += 1


def time_remaining(status: str, totals: BatteryTotals) -> float:
    """Hours until empty (positive) or until full (negative or zero)."""
    if status == "Discharging" and totals.time_to_empty is not None:
        return totals.time_to_empty / 3600.0 if totals.time_to_empty else 0.0
    if status == "Discharging" and totals.power is not None and totals.energy is not None:
        return totals.energy / totals.power if totals.power else 0.0
    if status == "Charging" and totals.time_to_full is not None:
        remaining = -totals.time_to_full / 3600.0 if totals.time_to_full else 0.0
        # Past 100% means no time remaining.
        return min(remaining, 0.0)
    if (
        status == "Charging"
        and totals.energy is not None
        and totals.energy_full is not None
        and totals.power is not None
    ):
        remaining = 0.0
        if totals.power:
            remaining = -_u32(totals.energy_full - totals.energy) / totals.power
        return min(remaining, 0.0)
    return 0.0


def calculated_capacity(
    totals: BatteryTotals,
    count: int,
    design_capacity: bool = False,
    full_at: Optional[int] = None,
) -> float:
    """Capacity in percent over ``count`` batteries, clamped at 100.

    With ``design_capacity`` the charge is measured against the design energy;
    ``full_at`` below 100 rescales so that level counts as full.
    """
    capacity = 0.0
    if totals.capacity is not None:
        if totals.capacity > 0:
            if count > 0:
                capacity = totals.capacity / count
        elif totals.energy_full is not None and totals.energy is not None:
            if totals.energy_full > 0:
                capacity = totals.energy * 100.0 / totals.energy_full

    if design_capacity and totals.energy is not None and totals.energy_full_design is not None:
        if totals.energy_full_design > 0:
            capacity = totals.energy * 100.0 / totals.energy_full_design

    if full_at is not None and full_at < 100:
        if full_at > 0:
            capacity = 100.0 * capacity / full_at
        else:
            capacity = 100.0 if capacity > 0 else 0.0

    # A calibrating battery can report more than 100%.
    return min(capacity, 100.0)