"""
scheduler
=================

Date and time rules for scheduled algorithm callbacks, resolved against
the NYSE trading calendar.  Session times come from
``pandas_market_calendars`` and are converted to naive New York wall
clock time, which is the clock the simulator and the market data use.

A scheduled event is the pairing of a date rule (which trading days) and
a time rule (when on each of those days).  The simulator asks the
:class:`ScheduleManager` for due events on every time step.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import pandas as pd
import pandas_market_calendars as mcal

from models import Symbol

__all__ = ["TradingCalendar", "DateRules", "TimeRules", "ScheduledEvent", "ScheduleManager"]

NEW_YORK = "America/New_York"


class TradingCalendar:
    """NYSE sessions between two dates, in naive New York time."""

    def __init__(self, calendar_name: str = "NYSE") -> None:
        self._calendar = mcal.get_calendar(calendar_name)
        self._cache: dict = {}

    def sessions(self, start: dt.date, end: dt.date) -> pd.DataFrame:
        """Return one row per trading day with ``market_open``/``market_close`` columns."""
        key = (start, end)
        if key not in self._cache:
            schedule = self._calendar.schedule(start_date=start, end_date=end)
            if schedule.empty:
                # Weekends and holidays have no sessions.
                schedule = pd.DataFrame(columns=["market_open", "market_close"], index=pd.Index([], name="date"))
            else:
                schedule = schedule[["market_open", "market_close"]].copy()
                for column in ("market_open", "market_close"):
                    schedule[column] = schedule[column].dt.tz_convert(NEW_YORK).dt.tz_localize(None)
                schedule.index = pd.Index([ts.date() for ts in schedule.index], name="date")
            self._cache[key] = schedule
        return self._cache[key]

    def trading_days(self, start: dt.date, end: dt.date) -> List[dt.date]:
        return list(self.sessions(start, end).index)

    def session(self, date: dt.date) -> Optional[pd.Series]:
        schedule = self.sessions(date, date)
        if schedule.empty:
            return None
        return schedule.iloc[0]

    def next_trading_day(self, date: dt.date) -> dt.date:
        # Three weeks comfortably covers any run of weekends and holidays.
        days = self.trading_days(date + dt.timedelta(days=1), date + dt.timedelta(days=21))
        if not days:
            raise ValueError(f"No trading day found after {date}")
        return days[0]


DateRule = Callable[[TradingCalendar, dt.date, dt.date], List[dt.date]]
TimeRule = Callable[[TradingCalendar, dt.date], Optional[dt.datetime]]


class DateRules:
    """Factories for date rules: callables returning the matching trading days in a window."""

    @staticmethod
    def tomorrow() -> DateRule:
        def rule(calendar: TradingCalendar, start: dt.date, end: dt.date) -> List[dt.date]:
            day = calendar.next_trading_day(start)
            return [day] if day <= end else []
        return rule

    @staticmethod
    def today() -> DateRule:
        def rule(calendar: TradingCalendar, start: dt.date, end: dt.date) -> List[dt.date]:
            return [start] if calendar.session(start) is not None else []
        return rule

    @staticmethod
    def on(*dates: dt.date) -> DateRule:
        def rule(calendar: TradingCalendar, start: dt.date, end: dt.date) -> List[dt.date]:
            return sorted(d for d in dates if start <= d <= end)
        return rule

    @staticmethod
    def every_day() -> DateRule:
        def rule(calendar: TradingCalendar, start: dt.date, end: dt.date) -> List[dt.date]:
            return calendar.trading_days(start, end)
        return rule


class TimeRules:
    """Factories for time rules: callables mapping a date to a fire time (or None)."""

    @staticmethod
    def at(hour: int, minute: int = 0) -> TimeRule:
        def rule(calendar: TradingCalendar, date: dt.date) -> Optional[dt.datetime]:
            return dt.datetime.combine(date, dt.time(hour, minute))
        return rule

    @staticmethod
    def after_market_open(symbol: Symbol, minutes_after_open: float = 0) -> TimeRule:
        # All symbols here trade the NYSE session.
        def rule(calendar: TradingCalendar, date: dt.date) -> Optional[dt.datetime]:
            session = calendar.session(date)
            if session is None:
                return None
            return session["market_open"].to_pydatetime() + dt.timedelta(minutes=minutes_after_open)
        return rule

    @staticmethod
    def before_market_close(symbol: Symbol, minutes_before_close: float = 0) -> TimeRule:
        def rule(calendar: TradingCalendar, date: dt.date) -> Optional[dt.datetime]:
            session = calendar.session(date)
            if session is None:
                return None
            return session["market_close"].to_pydatetime() - dt.timedelta(minutes=minutes_before_close)
        return rule


@dataclass
class ScheduledEvent:
    name: str
    callback: Callable[[], None]
    # Remaining fire times in ascending order; consumed as they fire.
    fire_times: List[dt.datetime] = field(default_factory=list)

    def due(self, now: dt.datetime) -> int:
        """Number of pending fire times at or before ``now``."""
        count = 0
        for fire_time in self.fire_times:
            if fire_time > now:
                break
            count += 1
        return count


class ScheduleManager:
    """Registers scheduled events and hands out the ones that are due."""

    def __init__(self, calendar: TradingCalendar) -> None:
        self.calendar = calendar
        self.events: List[ScheduledEvent] = []
        self.start: Optional[dt.date] = None
        self.end: Optional[dt.date] = None

    def set_window(self, start: dt.date, end: dt.date) -> None:
        self.start = start
        self.end = end

    def on(self, date_rule: DateRule, time_rule: TimeRule, callback: Callable[[], None], name: str = "") -> ScheduledEvent:
        if self.start is None or self.end is None:
            raise ValueError("Set the start and end dates before scheduling events")
        fire_times = []
        for date in date_rule(self.calendar, self.start, self.end):
            fire_time = time_rule(self.calendar, date)
            if fire_time is not None:
                fire_times.append(fire_time)
        event = ScheduledEvent(name=name or getattr(callback, "__name__", "scheduled"), callback=callback, fire_times=sorted(fire_times))
        self.events.append(event)
        return event

    def fire_due(self, now: dt.datetime) -> int:
        """Run every callback whose fire time has been reached; returns how many ran."""
        fired = 0
        for event in self.events:
            count = event.due(now)
            for _ in range(count):
                event.fire_times.pop(0)
                event.callback()
                fired += 1
        return fired
