"""A clock module with an optional calendar and a list of other time zones."""

from __future__ import annotations

import calendar
import locale
import logging
import re
import unicodedata
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Iterator
from zoneinfo import ZoneInfo

from .module import ALabel, _is_int

log = logging.getLogger(__name__)

CALENDAR_PLACEHOLDER = "calendar"
TIMEZONED_LIST_PLACEHOLDER = "timezoned_time_list"

MONDAY = calendar.MONDAY
SUNDAY = calendar.SUNDAY

MONTH_COLUMN_LENGTH = 20
WEEK_NUMBER_LENGTH = 3
DEFAULT_MONTH_COLUMNS = 3

# A Monday, used to name weekdays.
_REFERENCE_MONDAY = date(2001, 1, 1)


class CalendarMode(Enum):
    MONTH = "month"
    YEAR = "year"


class WeeksSide(Enum):
    HIDDEN = "hidden"
    LEFT = "left"
    RIGHT = "right"


def _display_width(text: str) -> int:
    width = 0
    for char in text:
        if unicodedata.combining(char):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width


def _first_weekday_of_month(year: int, month: int) -> int:
    return date(year, month, 1).weekday()


def _last_day(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def rows_in_month(year: int, month: int, first_weekday: int) -> int:
    """Lines a month takes in the calendar: its weeks plus two title lines.

    Weekdays are numbered from Monday (0) to Sunday (6).
    """
    offset = (_first_weekday_of_month(year, month) - first_weekday) % 7
    days = offset + _last_day(year, month)
    return -(-days // 7) + 2


def week_start_for_line(year: int, month: int, first_weekday: int, line: int) -> date | None:
    """Date that opens the week shown on ``line`` (from 3 on), or ``None``."""
    index = line - 2
    if _first_weekday_of_month(year, month) == first_weekday:
        index += 1
    if not 1 <= index <= 5:
        return None
    offset = (first_weekday - _first_weekday_of_month(year, month)) % 7
    day = 1 + offset + 7 * (index - 1)
    if day > _last_day(year, month):
        return None
    return date(year, month, day)


def _day_cell(current_date: date, year: int, month: int, day: int) -> str:
    if current_date == date(year, month, day):
        return "{today}"
    return f"{day:2d}"


def _weekday_name(weekday: int) -> str:
    name = (_REFERENCE_MONDAY + timedelta(days=weekday)).strftime("%a")
    while _display_width(name) > 2:
        name = name[:-1]
    return " " * (2 - _display_width(name)) + name


def calendar_line(
    current_date: date, year: int, month: int, line: int, first_weekday: int
) -> str:
    """One line of a month: title, weekday names, or a week of days.

    The current date is shown as a ``{today}`` placeholder.
    """
    if line == 0:
        return date(year, month, 1).strftime("%B %Y")
    if line == 1:
        return " ".join(_weekday_name((first_weekday + i) % 7) for i in range(7))
    if line == 2:
        weekday = _first_weekday_of_month(year, month)
        cells = [_day_cell(current_date, year, month, 1)]
        day = 2
        weekday = (weekday + 1) % 7
        while weekday != first_weekday:
            cells.append(_day_cell(current_date, year, month, day))
            day += 1
            weekday = (weekday + 1) % 7
        prefix = " " * (((_first_weekday_of_month(year, month) - first_weekday) % 7) * 3)
        return prefix + " ".join(cells)

    start = week_start_for_line(year, month, first_weekday, line)
    if start is None:
        return ""
    last = _last_day(year, month)
    day = start.day
    weekday = first_weekday
    cells = [_day_cell(current_date, year, month, day)]
    while True:
        weekday = (weekday + 1) % 7
        if weekday == first_weekday:
            break
        day += 1
        if day > last:
            break
        cells.append(_day_cell(current_date, year, month, day))
    padding = " " * (((first_weekday - weekday) % 7) * 3)
    return " ".join(cells) + padding


@contextmanager
def _time_locale(name: str | None) -> Iterator[None]:
    if name is None:
        yield
        return
    saved = locale.setlocale(locale.LC_TIME)
    locale.setlocale(locale.LC_TIME, name)
    try:
        yield
    finally:
        locale.setlocale(locale.LC_TIME, saved)


def _format(template: str, *args: Any, **kwargs: Any) -> str:
    try:
        return template.format(*args, **kwargs)
    except (KeyError, IndexError, ValueError) as exc:
        raise ValueError(f"Invalid format {template!r}: {exc}") from exc


def _in_zone(moment: datetime, zone: tzinfo | None) -> datetime:
    moment = moment.replace(microsecond=0)
    return moment.astimezone(zone) if zone is not None else moment.astimezone()


class Clock(ALabel):
    """Shows the time in one of several zones, with a calendar in the tooltip.

    ``first_weekday`` (Monday 0 .. Sunday 6) overrides the locale's first day
    of the week, which is otherwise Sunday.
    """

    def __init__(self, id: str, config: Any, first_weekday: int | None = None) -> None:
        super().__init__(config, "clock", id, "{:%H:%M}", 60, False, False, True)
        self._first_weekday = first_weekday
        self.current_time_zone_idx = 0
        self.time_zones: list[tzinfo | None] = []
        self.is_calendar_in_tooltip = False
        self.is_timezoned_list_in_tooltip = False

        self.weeks_pos = WeeksSide.HIDDEN
        self.fmt_map: dict[int, str] = {}
        self.cld_mode = CalendarMode.MONTH
        self.cld_mon_cols = DEFAULT_MONTH_COLUMNS
        self.cld_mon_col_len = MONTH_COLUMN_LENGTH
        self.cld_wn_len = WEEK_NUMBER_LENGTH
        self.cld_curr_shift = 0
        self.cld_shift = 0
        self.cld_base_day = 0
        self._year_shift: date | None = None
        self._month_shift: tuple[int, int] | None = None
        self._year_cached = ""
        self._month_cached = ""

        self._load_time_zones()
        self._detect_placeholders()
        if self.is_calendar_in_tooltip:
            self._configure_calendar()

        configured_locale = self.config.get("locale")
        self.locale: str | None = configured_locale if isinstance(configured_locale, str) else None
        if self.locale is not None:
            try:
                with _time_locale(self.locale):
                    pass
            except locale.Error as exc:
                raise ValueError(f"Invalid locale: {self.locale}") from exc

    def _locate(self, name: str) -> None:
        try:
            self.time_zones.append(ZoneInfo(name))
        except (ValueError, OSError, LookupError) as exc:
            log.warning("Timezone: %s. %s", name, exc)

    def _load_time_zones(self) -> None:
        zones = self.config.get("timezones")
        zone = self.config.get("timezone")
        if isinstance(zones, list) and zones:
            for name in zones:
                if isinstance(name, str) and name:
                    self._locate(name)
        elif isinstance(zone, str) and zone:
            self._locate(zone)
        # None stands for the local time zone.
        if not self.time_zones:
            self.time_zones.append(None)

    def _detect_placeholders(self) -> None:
        tooltip_format = self.config.get("tooltip-format")
        if not isinstance(tooltip_format, str):
            return
        trimmed = "".join(tooltip_format.split())
        self.is_calendar_in_tooltip = "{" + CALENDAR_PLACEHOLDER + "}" in trimmed
        self.is_timezoned_list_in_tooltip = "{" + TIMEZONED_LIST_PLACEHOLDER + "}" in trimmed

    def _configure_calendar(self) -> None:
        settings = self.config.get(CALENDAR_PLACEHOLDER)
        settings = settings if isinstance(settings, dict) else {}
        formats = settings.get("format")
        formats = formats if isinstance(formats, dict) else {}

        weeks_pos = settings.get("weeks-pos")
        if weeks_pos == "left":
            self.weeks_pos = WeeksSide.LEFT
        elif weeks_pos == "right":
            self.weeks_pos = WeeksSide.RIGHT

        def fmt(key: str) -> str:
            value = formats.get(key)
            return value if isinstance(value, str) else "{}"

        self.fmt_map[0] = fmt("months")
        self.fmt_map[2] = fmt("days")
        week_spec = "{:%W}" if self.first_day_of_week() == MONDAY else "{:%U}"
        weeks = formats.get("weeks")
        if isinstance(weeks, str) and self.weeks_pos is not WeeksSide.HIDDEN:
            self.fmt_map[4] = re.sub(r"\{\}", week_spec, weeks)
            visible = re.sub(r"</?[^>]+>|\{.*\}", "", self.fmt_map[4])
            self.cld_wn_len += len(visible)
        elif self.weeks_pos is not WeeksSide.HIDDEN:
            self.fmt_map[4] = week_spec
        else:
            self.cld_wn_len = 0
        self.fmt_map[1] = fmt("weekdays")
        if isinstance(formats.get("today"), str):
            self.fmt_map[3] = formats["today"]
            self.cld_base_day = datetime.now(timezone.utc).day
        else:
            self.fmt_map[3] = "{}"

        mode = settings.get("mode")
        if isinstance(mode, str):
            try:
                self.cld_mode = CalendarMode(mode)
            except ValueError:
                log.warning(
                    'Clock calendar configuration "mode" "%s" is not recognized. '
                    'Mode = "month" is used instead',
                    mode,
                )

        columns = settings.get("mode-mon-col")
        if _is_int(columns):
            columns = int(columns)
            if columns <= 0 or 12 % columns != 0:
                log.warning(
                    'Clock calendar configuration "mode-mon-col" = %s must be one of '
                    "[1, 2, 3, 4, 6, 12]. Value 3 is used instead",
                    columns,
                )
                columns = DEFAULT_MONTH_COLUMNS
            self.cld_mon_cols = columns
        else:
            self.cld_mon_cols = 1

        on_scroll = settings.get("on-scroll")
        if _is_int(on_scroll):
            self.cld_shift = int(on_scroll)

    def _on_leave(self) -> None:
        """The pointer left the module: show the current month again."""
        self.cld_curr_shift = 0

    def first_day_of_week(self) -> int:
        """First day of the week, Monday 0 to Sunday 6."""
        return SUNDAY if self._first_weekday is None else self._first_weekday

    def _current_timezone(self) -> tzinfo | None:
        return self.time_zones[self.current_time_zone_idx]

    def is_timezone_fixed(self) -> bool:
        return self._current_timezone() is not None

    def _week_cell(self, year: int, month: int, first_weekday: int, line: int, rows: list[int]) -> str | None:
        if line >= rows[month - 1]:
            return None
        start = date(year, month, 1) if line == 2 else week_start_for_line(year, month, first_weekday, line)
        if start is None:
            return None
        return _format(self.fmt_map[4], start)

    def get_calendar(self, now: datetime, wtime: datetime) -> str:
        """Calendar for the month (or year) of ``wtime``, with ``now`` marked as today."""
        shown = wtime.date()
        year, month, day = shown.year, shown.month, shown.day
        first_weekday = self.first_day_of_week()
        columns = self.cld_mon_cols
        max_rows = 12 // columns
        current = now.date()
        year_mode = self.cld_mode is CalendarMode.YEAR

        if year_mode:
            if date(year, 1, 1) == self._year_shift:
                if day == self.cld_base_day or self.cld_base_day == 0:
                    return self._year_cached
                self.cld_base_day = day
            else:
                self._year_shift = date(year, 1, 1)
        else:
            if (year, month) == self._month_shift:
                if day == self.cld_base_day or self.cld_base_day == 0:
                    return self._month_cached
                self.cld_base_day = day
            else:
                self._month_shift = (year, month)

        rows = [
            rows_in_month(year, m, first_weekday) if year_mode or m == month else 0
            for m in range(1, 13)
        ]
        out: list[str] = []
        for row in range(max_rows):
            lines = max(rows[row * columns : (row + 1) * columns])
            for line in range(lines):
                parts: list[str] = []
                for col in range(columns):
                    mon = row * columns + col + 1
                    if not (year_mode or mon == month):
                        continue
                    if col != 0 and year_mode:
                        parts.append("   ")
                    if self.weeks_pos is WeeksSide.LEFT and line > 1:
                        cell = self._week_cell(year, mon, first_weekday, line, rows)
                        parts.append(" " * self.cld_wn_len if cell is None else cell + " ")
                    width = self.cld_mon_col_len + (self.cld_wn_len if line < 2 else 0)
                    text = calendar_line(current, year, mon, line, first_weekday)
                    if self.weeks_pos is not WeeksSide.LEFT or line == 0:
                        parts.append(text.ljust(width))
                    else:
                        parts.append(text.rjust(width))
                    if self.weeks_pos is WeeksSide.RIGHT and line > 1:
                        cell = self._week_cell(year, mon, first_weekday, line, rows)
                        parts.append(" " * self.cld_wn_len if cell is None else " " + cell)
                joined = "".join(parts)
                out.append(_format(self.fmt_map[line], joined) if line < 2 else joined)
                if line + 1 != lines or (row + 1 != max_rows and year_mode):
                    out.append("\n")
            if row + 1 != max_rows and year_mode:
                out.append("\n")

        days = _format(self.fmt_map[2], "".join(out))
        result = _format(days, today=_format(self.fmt_map[3], f"{day:2d}"))
        if year_mode:
            self._year_cached = result
        else:
            self._month_cached = result
        return result

    def timezones_text(self, now: datetime) -> str:
        """The time in every configured zone but the current one, one per line."""
        if len(self.time_zones) == 1:
            return ""
        return "".join(
            _format(self.format, _in_zone(now, zone)) + "\n"
            for index, zone in enumerate(self.time_zones)
            if index != self.current_time_zone_idx
        )

    def update(self, now: datetime | None = None) -> None:
        """Redraw the time and tooltip for ``now`` (the current time by default)."""
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        zone = self._current_timezone()
        ztime = _in_zone(now, zone)

        now_utc = now.astimezone(timezone.utc)
        shifted_date = now_utc.date()
        if self.cld_curr_shift:
            months = shifted_date.year * 12 + shifted_date.month - 1 + self.cld_curr_shift
            shifted_date = date(months // 12, months % 12 + 1, 1)
        now_shifted = datetime.combine(shifted_date, now_utc.timetz())
        shifted_ztime = _in_zone(now_shifted, zone)

        with _time_locale(self.locale):
            self.text = _format(self.format, ztime)
            tooltip_format = self.config.get("tooltip-format")
            if self.tooltip_enabled() and isinstance(tooltip_format, str):
                calendar_lines = ""
                timezoned_lines = ""
                if self.is_calendar_in_tooltip:
                    calendar_lines = self.get_calendar(ztime, shifted_ztime)
                if self.is_timezoned_list_in_tooltip:
                    timezoned_lines = self.timezones_text(now)
                self.tooltip = _format(
                    tooltip_format,
                    shifted_ztime,
                    **{
                        CALENDAR_PLACEHOLDER: calendar_lines,
                        TIMEZONED_LIST_PLACEHOLDER: timezoned_lines,
                    },
                )
        super().update()

    def do_action(self, name: str) -> None:
        """Run a clock action by name and redraw."""
        actions = {
            "mode": self.cld_mode_switch,
            "shift_up": self.cld_shift_up,
            "shift_down": self.cld_shift_down,
            "tz_up": self.tz_up,
            "tz_down": self.tz_down,
        }
        action = actions.get(name)
        if action is None:
            log.error('Clock. Unsupported action "%s"', name)
            return
        action()
        self.update()

    def cld_mode_switch(self) -> None:
        self.cld_mode = CalendarMode.MONTH if self.cld_mode is CalendarMode.YEAR else CalendarMode.YEAR

    def _shift_step(self) -> int:
        return (12 if self.cld_mode is CalendarMode.YEAR else 1) * self.cld_shift

    def cld_shift_up(self) -> None:
        self.cld_curr_shift += self._shift_step()

    def cld_shift_down(self) -> None:
        self.cld_curr_shift -= self._shift_step()

    def tz_up(self) -> None:
        count = len(self.time_zones)
        if count == 1:
            return
        self.current_time_zone_idx = (self.current_time_zone_idx + 1) % count

    def tz_down(self) -> None:
        count = len(self.time_zones)
        if count == 1:
            return
        self.current_time_zone_idx = (
            count - 1 if self.current_time_zone_idx == 0 else self.current_time_zone_idx - 1
        )