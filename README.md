# wavebar

wavebar contains the configuration handling and module logic of a
configurable status bar for Wayland compositors. Each module keeps its
state in plain attributes: `text`, `tooltip`, `classes` and `visible`. A
front end reads these attributes to draw the module. wavebar does not draw
anything itself.

## What is in the package

- `wavebar.config` finds, loads and merges configuration.
  - `find_config_path` searches the directory named by `WAVEBAR_CONFIG_DIR`
    first, then the XDG-style directories in `CONFIG_DIRS`.
  - `try_expand_path` expands `$VARIABLES`, `~` and glob patterns.
  - `Config.load` reads a JSON file and resolves its `include` entries. The
    entries may be a single string or a list, and nesting is limited to 100
    levels. Files are parsed as plain JSON, so comments are not accepted.
  - `merge_config` merges included files without overriding values that are
    already set.
  - `is_valid_output` and `Config.get_output_configs` select the bar
    configurations that apply to an output. They match by name or identifier,
    and also understand `!` exclusions and `*`.
- `wavebar.module` holds the base classes `AModule`, `ALabel` and
  `AIconLabel`.
  - `AModule.handle_toggle` maps a `ButtonEvent` to the matching `on-click`,
    `on-double-click` or `on-click-right` option, and so on.
  - `AModule.handle_scroll` maps a `ScrollEvent` to `on-scroll-up` or
    `on-scroll-down`. Smooth scrolls are accumulated against
    `smooth-scrolling-threshold`.
  - The `actions` option translates event names into module actions.
  - Commands are not run. They are appended to `pending_commands`, and the
    callables in `callbacks` are called when a module asks to be redrawn.
  - `ALabel` handles `format`, `format-alt` and `format-alt-click`.
    `interval` may be a number or `"once"`. It also handles `max-length`,
    `min-length`, `rotate` and `align`.
  - `ALabel.get_icon` picks an icon from `format-icons`.
  - `ALabel.get_state` picks the matching entry from `states`.
- `wavebar.custom`: `Custom` shows a command's output. Pass the output to
  `set_output(exit_code, out)`.
  - Plain output gives the text, tooltip and class on its first three lines.
  - With `"return-type": "json"`, the first line is an object with `text`,
    `alt`, `tooltip`, `class` and `percentage`.
  - `escape` escapes markup characters.
  - `refresh` matches real-time signals against the `signal` option.
  - Requests to run the command again are counted in `wake_requests`.
- `wavebar.cpu`: `Cpu` reports load, total and per-core usage, and
  frequencies.
  - It reads `/proc/stat`, `/proc/cpuinfo` and the cpufreq directory. Each
    path can be overridden.
  - `parse_cpuinfo` and `parse_cpu_frequencies` work on text you supply.
- `wavebar.battery_info` reads and combines power-supply data.
  - `read_battery` reads one battery directory.
  - `BatteryReading.derive` fills in missing energy, charge, voltage and
    capacity values.
  - `BatteryTotals` sums readings over several batteries.
  - `time_remaining` and `calculated_capacity` give the combined values.
    `calculated_capacity` applies `design-capacity` and `full-at`.
  - `status_gt` orders statuses: Unknown > Full > Not charging >
    Discharging > Charging.
- `wavebar.battery`: `Battery` scans a power-supply directory, by default
  `/sys/class/power_supply`, for batteries and the adapter.
  - It honours `bat`, `adapter` and `format-time`.
  - Formats are chosen per status and state, for example
    `format-discharging-warning`, `format-charging` and `tooltip-format-full`.
- `wavebar.clock`: `Clock` shows the time in one or more zones, set with
  `timezone` or `timezones`.
  - It fills the `{calendar}` and `{timezoned_time_list}` tooltip
    placeholders.
  - The calendar has a month or year mode. Its layout is set by
    `mode-mon-col`, week numbers by `weeks-pos`, and its formats by `format`.
  - Actions: `mode`, `shift_up`, `shift_down`, `tz_up` and `tz_down`.
  - `rows_in_month`, `week_start_for_line` and `calendar_line` give the
    calendar layout. Weekdays are numbered Monday 0 to Sunday 6.

## Examples

Select the outputs that a bar configuration applies to:

```python
from wavebar.config import is_valid_output

bar_config = {"output": ["!HDMI-A-1", "*"]}
is_valid_output(bar_config, "DP-1", "Example Monitor")      # True
is_valid_output(bar_config, "HDMI-A-1", "Example Monitor")  # False
```

Pick an icon by percentage:

```python
from wavebar.module import ALabel

label = ALabel({"format-icons": ["low", "mid", "high"]}, "demo", "", "{}")
label.get_icon(50)  # "mid"
```

Show the JSON output of a script:

```python
from wavebar.custom import Custom

weather = Custom("weather", "", {"exec": "weather-script", "return-type": "json"})
weather.set_output(0, '{"text": "Sunny", "class": "warm", "percentage": 70}')
weather.update()
weather.text     # "Sunny"
weather.classes  # {"warm", "flat", "text-button"}
```

Parse processor times:

```python
from wavebar.cpu import parse_cpuinfo

parse_cpuinfo("cpu  1 2 3 4\n")  # [(4, 10)]
```

Lay out a calendar month (February 2024, weeks starting on Monday):

```python
from wavebar.clock import rows_in_month

rows_in_month(2024, 2, 0)  # 7: a title row, a weekday row and five weeks
```

Format the time in a fixed zone:

```python
from datetime import datetime, timezone
from wavebar.clock import Clock

clock = Clock("", {"timezone": "UTC"})
clock.update(datetime(2024, 2, 14, 9, 30, tzinfo=timezone.utc))
clock.text  # "09:30"
```

## What the package does not do

- There is no command-line program.
- There is no window, drawing or layer-shell surface.
- There is no code that builds bars and their modules from a loaded
  configuration.
- Modules do not run user commands or background timers. They record what
  should be run (`pending_commands`, `wake_requests`), and the caller decides
  when to call `update`.

## Tests

The test suite uses pytest, which is installed with the `test` extra:

```
pip install -e .[test]
pytest
```