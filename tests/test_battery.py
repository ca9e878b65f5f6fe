from pathlib import Path

import pytest

from wavebar.battery import Battery


def make_supply(root: Path, name: str, **files: object) -> Path:
    directory = root / name
    directory.mkdir()
    for key, value in files.items():
        (directory / key).write_text(f"{value}\n")
    return directory


def make_battery(root: Path, name: str = "BAT0", status: str = "Discharging", **values: object) -> Path:
    return make_supply(root, name, uevent="", type="Battery", status=status, **values)


def test_missing_data_dir_raises(tmp_path):
    with pytest.raises(RuntimeError):
        Battery("", {}, tmp_path / "absent")


def test_refresh_finds_batteries_and_adapter(tmp_path):
    bat = make_battery(tmp_path, capacity=50)
    ac = make_supply(tmp_path, "AC", online=1, type="Mains")
    module = Battery("", {"adapter": "AC"}, tmp_path)
    assert module.batteries == [bat]
    assert module.adapter == ac


def test_refresh_respects_bat_and_scope(tmp_path):
    make_battery(tmp_path, "BAT0", capacity=40)
    bat1 = make_battery(tmp_path, "BAT1", capacity=60)
    make_battery(tmp_path, "hid-mouse", capacity=70, scope="Device")
    assert Battery("", {"bat": "BAT1"}, tmp_path).batteries == [bat1]
    names = [p.name for p in Battery("", {}, tmp_path).batteries]
    assert names == ["BAT0", "BAT1"]


def test_refresh_drops_removed_battery(tmp_path):
    bat = make_battery(tmp_path, capacity=50)
    module = Battery("", {}, tmp_path)
    for child in bat.iterdir():
        child.unlink()
    bat.rmdir()
    module.refresh_batteries()
    assert module.batteries == []


def test_get_infos_discharging(tmp_path):
    make_battery(tmp_path, capacity=50, energy_now=20000000, power_now=10000000)
    make_supply(tmp_path, "AC", online=0)
    module = Battery("", {"adapter": "AC"}, tmp_path)
    capacity, remaining, status, power = module.get_infos()
    assert capacity == 50
    assert remaining == pytest.approx(2.0)
    assert status == "Discharging"
    assert power == pytest.approx(10.0)


def test_get_infos_plugged_when_adapter_online(tmp_path):
    make_battery(tmp_path, status="Not charging", capacity=80)
    make_supply(tmp_path, "AC", online=1)
    module = Battery("", {"adapter": "AC"}, tmp_path)
    assert module.get_infos()[2] == "Plugged"


def test_get_infos_charging_full_becomes_full(tmp_path):
    make_battery(tmp_path, status="Charging", capacity=100)
    module = Battery("", {}, tmp_path)
    capacity, _, status, _ = module.get_infos()
    assert (capacity, status) == (100, "Full")


def test_adapter_status(tmp_path):
    make_battery(tmp_path, capacity=50)
    module = Battery("", {}, tmp_path)
    module.adapter = None
    assert module.get_adapter_status(50) == "Unknown"
    module.adapter = make_supply(tmp_path, "AC", online=1)
    assert module.get_adapter_status(100) == "Full"
    assert module.get_adapter_status(50) == "Plugged"


def test_format_time_remaining(tmp_path):
    make_battery(tmp_path, capacity=50)
    module = Battery("", {}, tmp_path)
    assert module.format_time_remaining(0.0) == ""
    assert module.format_time_remaining(1.5) == "1 h 30 min"
    assert module.format_time_remaining(-1.5) == module.format_time_remaining(1.5)
    custom = Battery("", {"format-time": "{H}:{m}"}, tmp_path)
    assert custom.format_time_remaining(2.25) == "2:15"


def test_update_renders_label_and_class(tmp_path):
    make_battery(tmp_path, capacity=50, energy_now=20000000, power_now=10000000)
    make_supply(tmp_path, "AC", online=0)
    module = Battery("", {"adapter": "AC"}, tmp_path)
    module.update()
    assert module.text == "50%"
    assert "discharging" in module.classes
    assert module.tooltip == "Time to empty: 2 h 0 min"
    assert module.visible is True


def test_update_status_specific_format(tmp_path):
    make_battery(tmp_path, status="Not charging", capacity=70)
    module = Battery("", {"format-not-charging": "idle {capacity}", "adapter": "none"}, tmp_path)
    module.update()
    assert module.text == "idle 70"
    assert "not-charging" in module.classes


def test_update_hides_without_batteries(tmp_path):
    module = Battery("", {}, tmp_path)
    module.update()
    assert module.visible is False