import pytest

from wavebar.module import (
    ONCE_INTERVAL,
    AIconLabel,
    ALabel,
    AModule,
    ButtonEvent,
    ScrollDirection,
    ScrollEvent,
)


def label(config, **kwargs):
    return ALabel(config, "test", "", "{}", **kwargs)


class RecordingModule(AModule):
    def __init__(self, config):
        super().__init__(config, "rec")
        self.actions_done = []

    def do_action(self, name):
        self.actions_done.append(name)


def test_format_from_config():
    lbl = ALabel({"format": "X {}"}, "t", "", "{}")
    assert lbl.format == "X {}"
    assert lbl.default_format == "X {}"
    assert ALabel({}, "t", "", "{}").format == "{}"


@pytest.mark.parametrize(
    "config, expected",
    [({"interval": "once"}, ONCE_INTERVAL), ({"interval": 7}, 7), ({}, 5), ({"interval": -1}, 5)],
)
def test_interval(config, expected):
    assert ALabel(config, "t", "", "{}", 5).interval == expected


@pytest.mark.parametrize("percentage, expected", [(0, "low"), (50, "mid"), (100, "high"), (250, "high")])
def test_get_icon_array(percentage, expected):
    lbl = label({"format-icons": ["low", "mid", "high"]})
    assert lbl.get_icon(percentage) == expected


def test_get_icon_object_alternatives():
    lbl = label({"format-icons": {"default": ["d0", "d1"], "charging": "c"}})
    assert lbl.get_icon(10, "charging") == "c"
    assert lbl.get_icon(10, "other") == "d0"
    assert lbl.get_icon(10, ["", "x", "charging"]) == "c"
    assert lbl.get_icon(90, ["x"]) == "d1"


def test_get_icon_custom_max():
    lbl = label({"format-icons": ["a", "b"]})
    assert lbl.get_icon(5, "", 10) == "b"
    assert lbl.get_icon(4, "", 10) == "a"


def test_get_icon_missing():
    assert label({}).get_icon(50) == ""
    assert label({"format-icons": {"charging": "c"}}).get_icon(50) == ""


def test_get_state_lesser():
    lbl = label({"states": {"warning": 30, "critical": 15}})
    assert lbl.get_state(10, True) == "critical"
    assert "critical" in lbl.classes and "warning" not in lbl.classes
    assert lbl.get_state(20, True) == "warning"
    assert "warning" in lbl.classes and "critical" not in lbl.classes
    assert lbl.get_state(50, True) == ""
    assert not {"warning", "critical"} & lbl.classes


def test_get_state_greater_and_ignores_bad_values():
    lbl = label({"states": {"high": 80, "mid": 50, "bad": "x"}})
    assert lbl.get_state(90) == "high"
    assert lbl.get_state(60) == "mid"
    assert label({}).get_state(60) == ""


def test_format_alt_toggle():
    lbl = label({"format": "A", "format-alt": "B", "format-alt-click": 1})
    assert lbl.click_enabled
    lbl.handle_toggle(ButtonEvent(1))
    assert (lbl.format, lbl.alt) == ("B", True)
    lbl.handle_toggle(ButtonEvent(3))
    assert lbl.format == "B"
    lbl.handle_toggle(ButtonEvent(1))
    assert (lbl.format, lbl.alt) == ("A", False)


def test_click_queues_command_and_emits():
    module = AModule({"on-click": "run-me", "on-click-right": "other"}, "m")
    fired = []
    module.callbacks.append(lambda: fired.append(True))
    assert module.handle_toggle(ButtonEvent(1)) is True
    module.handle_toggle(ButtonEvent(3))
    module.handle_toggle(ButtonEvent(2))
    assert module.pending_commands == ["run-me", "other"]
    assert len(fired) == 3


def test_actions_are_dispatched():
    module = RecordingModule({"actions": {"on-click": "mode", "on-scroll-up": "up"}})
    assert module.click_enabled and module.scroll_enabled
    module.handle_toggle(ButtonEvent(1))
    module.handle_scroll(ScrollEvent(ScrollDirection.UP))
    assert module.actions_done == ["mode", "up"]
    assert module.pending_commands == []


def test_non_string_actions_ignored():
    module = AModule({"actions": {"a": 1}}, "m")
    assert module.actions == {}
    assert module.click_enabled is False


def test_discrete_scroll_direction():
    module = AModule({}, "m")
    assert module.get_scroll_dir(ScrollEvent(ScrollDirection.LEFT)) is ScrollDirection.LEFT


def test_smooth_scroll_accumulates():
    module = AModule({"smooth-scrolling-threshold": 1.0}, "m")
    assert module.get_scroll_dir(ScrollEvent(delta_y=0.6)) is ScrollDirection.NONE
    assert module.get_scroll_dir(ScrollEvent(delta_y=0.6)) is ScrollDirection.DOWN
    assert module.distance_scrolled_y == 0.0
    assert module.get_scroll_dir(ScrollEvent(delta_y=0.6)) is ScrollDirection.NONE
    assert module.get_scroll_dir(ScrollEvent(delta_x=-2.0)) is ScrollDirection.LEFT
    assert module.get_scroll_dir(ScrollEvent(delta_y=-2.0)) is ScrollDirection.UP


def test_scroll_command():
    module = AModule({"on-scroll-up": "louder", "on-scroll-down": "quieter"}, "m")
    assert module.scroll_enabled
    module.handle_scroll(ScrollEvent(ScrollDirection.UP))
    module.handle_scroll(ScrollEvent(ScrollDirection.DOWN))
    module.handle_scroll(ScrollEvent(ScrollDirection.LEFT))
    assert module.pending_commands == ["louder", "quieter"]


def test_on_update_command():
    module = AModule({"on-update": "notify"}, "m")
    module.update()
    assert module.pending_commands == ["notify"]


def test_tooltip_enabled_and_refresh():
    assert AModule({}, "m").tooltip_enabled() is True
    assert AModule({"tooltip": False}, "m").tooltip_enabled() is False
    assert AModule({}, "m").refresh(35) is False


def test_label_layout_options():
    lbl = label({"max-length": 10, "min-length": 4, "rotate": 90, "align": 0.2})
    assert lbl.max_width_chars == 10 and lbl.ellipsize
    assert lbl.width_chars == 4
    assert lbl.angle == 90
    assert lbl.yalign == 0.2
    assert label({"align": 0.3}).xalign == 0.3
    assert label({}, ellipsize=True).ellipsize is True


def test_label_id_class():
    assert "main" in ALabel({}, "t", "main", "{}").classes


def test_icon_label_visibility():
    hidden = AIconLabel({}, "i", "", "{}")
    hidden.update()
    assert hidden.icon_visible is False
    shown = AIconLabel({"icon": True}, "i", "", "{}")
    shown.update()
    assert shown.icon_visible is True
    assert shown.icon_enabled() is True