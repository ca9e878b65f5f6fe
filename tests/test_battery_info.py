import itertools
from dataclasses import fields

import pytest

from wavebar.battery_info import (
    BatteryReading,
    BatteryTotals,
    calculated_capacity,
    read_battery,
    status_gt,
    time_remaining,
)

ORDER = ["Unknown", "Full", "Not charging", "Discharging", "Charging"]


@pytest.mark.parametrize("higher,lower", list(itertools.combinations(ORDER, 2)))
def test_status_order(higher, lower):
    assert status_gt(higher, lower) is True
    assert status_gt(lower, higher) is False


@pytest.mark.parametrize("status", ORDER)
def test_status_not_greater_than_itself(status):
    assert status_gt(status, status) is False


def test_read_battery_missing_files(tmp_path):
    reading = read_battery(tmp_path)
    assert reading.status == ""
    assert all(getattr(reading, f.name) is None for f in fields(reading) if f.name != "status")


def test_read_battery_values_and_fallbacks(tmp_path):
    (tmp_path / "status").write_text("Discharging\n")
    (tmp_path / "capacity").write_text("42\n")
    (tmp_path / "current_avg").write_text("1500000\n")
    (tmp_path / "voltage_avg").write_text("11000000\n")
    (tmp_path / "energy_now").write_text("30000000\n")
    reading = read_battery(tmp_path)
    assert reading.status == "Discharging"
    assert reading.capacity == 42
    assert reading.current_now == 1500000
    assert reading.voltage_now == 11000000
    assert reading.energy_now == 30000000
    assert reading.power_now is None


def test_read_battery_prefers_now_over_avg(tmp_path):
    (tmp_path / "current_now").write_text("7\n")
    (tmp_path / "current_avg").write_text("9\n")
    assert read_battery(tmp_path).current_now == 7


def test_read_battery_unparsable_is_zero(tmp_path):
    (tmp_path / "capacity").write_text("garbage\n")
    assert read_battery(tmp_path).capacity == 0


def test_derive_empty_reading_stays_empty():
    assert BatteryReading(status="Full").derive() == BatteryReading(status="Full")


def test_derive_keeps_complete_reading():
    reading = BatteryReading(
        status="Charging",
        capacity=50,
        current_now=1000000,
        voltage_now=12000000,
        charge_full=4000000,
        charge_full_design=5000000,
        charge_now=2000000,
        power_now=12000000,
        energy_now=24000000,
        energy_full=48000000,
        energy_full_design=60000000,
    )
    assert reading.derive() == reading


def test_derive_voltage_from_power_and_current():
    derived = BatteryReading(power_now=5000000, current_now=1000000).derive()
    assert derived.voltage_now == 5000000


def test_derive_capacity_full_from_charge():
    derived = BatteryReading(charge_now=3000000, charge_full=3000000).derive()
    assert derived.capacity == 100


def test_derive_energy_from_charge_and_voltage():
    derived = BatteryReading(charge_now=1000000, voltage_now=12000000, charge_full=2000000).derive()
    assert derived.energy_now == 12000000
    assert derived.energy_full == 2 * derived.energy_now
    assert derived.capacity * derived.charge_full == 100 * derived.charge_now


def test_derive_power_from_voltage_and_current():
    derived = BatteryReading(voltage_now=1000000, current_now=2500000).derive()
    assert derived.power_now == 2500000


def test_totals_sum_and_lowest_status():
    totals = BatteryTotals()
    totals.add(BatteryReading(status="Full", power_now=3, capacity=90))
    totals.add(BatteryReading(status="Discharging", power_now=4, energy_now=10))
    assert totals.status == "Discharging"
    assert totals.power == 3 + 4
    assert totals.energy == 10
    assert totals.capacity == 90
    assert totals.energy_full is None
    assert totals.count == 2


def test_totals_status_stays_unknown_without_batteries():
    assert BatteryTotals().status == "Unknown"


def test_time_remaining_from_time_to_empty():
    totals = BatteryTotals(time_to_empty=3600)
    assert time_remaining("Discharging", totals) == pytest.approx(1.0)


def test_time_remaining_from_energy_is_proportional():
    one = time_remaining("Discharging", BatteryTotals(power=5, energy=10))
    two = time_remaining("Discharging", BatteryTotals(power=5, energy=20))
    assert one > 0
    assert two == pytest.approx(2 * one)


def test_time_remaining_charging_is_never_positive():
    assert time_remaining("Charging", BatteryTotals(time_to_full=1800)) == pytest.approx(-0.5)
    full = BatteryTotals(energy=50, energy_full=50, power=10)
    assert time_remaining("Charging", full) == 0.0
    partial = BatteryTotals(energy=25, energy_full=50, power=10)
    assert time_remaining("Charging", partial) < 0


def test_time_remaining_zero_for_other_status():
    assert time_remaining("Full", BatteryTotals(time_to_empty=3600, power=1, energy=1)) == 0.0


def test_capacity_averaged_over_batteries():
    totals = BatteryTotals(capacity=60)
    assert calculated_capacity(totals, 1) == pytest.approx(60)
    assert calculated_capacity(totals, 2) == pytest.approx(calculated_capacity(totals, 1) / 2)


def test_capacity_from_energy_when_reported_zero():
    totals = BatteryTotals(capacity=0, energy=40, energy_full=40)
    assert calculated_capacity(totals, 1) == pytest.approx(100)


def test_design_capacity_uses_design_energy():
    totals = BatteryTotals(capacity=80, energy=30, energy_full_design=30)
    assert calculated_capacity(totals, 1, design_capacity=True) == pytest.approx(100)
    assert calculated_capacity(totals, 1, design_capacity=False) == pytest.approx(80)


def test_full_at_rescales_and_clamps():
    totals = BatteryTotals(capacity=60)
    assert calculated_capacity(totals, 1, full_at=50) == 100.0
    assert calculated_capacity(totals, 1, full_at=100) == pytest.approx(60)
    assert calculated_capacity(BatteryTotals(capacity=40), 1, full_at=80) == pytest.approx(50)


def test_capacity_zero_without_data():
    assert calculated_capacity(BatteryTotals(), 0) == 0.0