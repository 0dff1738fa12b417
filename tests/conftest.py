"""
Shared fixtures: the NYSE calendar, the SPX sample dataset and a
recording algorithm that captures everything the simulator delivers.
"""

import pytest

from sample_data import build_spx_frames, load_spx_sample
from scheduler import TradingCalendar
from simulator import Simulator
from strategies.base import BaseAlgorithm


@pytest.fixture(scope="session")
def calendar():
    return TradingCalendar()


@pytest.fixture(scope="session")
def spx_frames(calendar):
    return build_spx_frames(calendar)


@pytest.fixture(scope="session")
def spx_loader(calendar):
    return load_spx_sample(calendar)


@pytest.fixture
def simulator(spx_loader, calendar):
    return Simulator(spx_loader, calendar=calendar)


class RecordingAlgorithm(BaseAlgorithm):
    """Runs ``setup(self)`` in initialize and records slices and order events."""

    def __init__(self, simulator, setup, start=(2021, 1, 4), end=(2021, 1, 31)):
        super().__init__(simulator)
        self.setup = setup
        self.start = start
        self.end = end
        self.delistings = []
        self.order_events = []
        self.slices = 0
        self.ended = False
        self.end_time = None

    def initialize(self):
        self.set_start_date(*self.start)
        self.set_end_date(*self.end)
        self.setup(self)

    def on_data(self, data):
        self.slices += 1
        self.delistings.extend(data.delistings.values())

    def on_order_event(self, order_event):
        self.order_events.append(order_event)

    def on_end_of_algorithm(self):
        self.ended = True
        self.end_time = self.time


@pytest.fixture
def recording_algorithm():
    return RecordingAlgorithm
