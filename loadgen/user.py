import logging, random, threading
from enum import Enum
from typing import Optional, Protocol

import requests

from .catalog import ShopActions
from .config import LoadgenConfig

logger = logging.getLogger(__name__)


class State(Enum):
    SELECT_AND_RUN = "select_and_run"
    THINK = "think"


class Driver(Protocol):
    def start(self) -> None: ...
    def run_iteration(self) -> None: ...
    def stop(self) -> None: ...


class ShopperDriver:
    """One browser-like shopper: its own session (cookies, cart) and random source."""

    def __init__(self, cfg: LoadgenConfig, rng: random.Random = None, session_factory=requests.Session):
        self.cfg = cfg
        self.rng = rng or random.Random()
        self.session_factory = session_factory
        self.session = None
        self.actions = None
        self.sampler = None
        self.last_action = None

    def start(self):
        self.session = self.session_factory()
        self.actions = ShopActions(self.session, self.cfg, rng=self.rng,
                                   request_kwargs={"timeout": self.cfg.request_timeout})
        self.sampler = self.actions.sampler()

    def run_iteration(self):
        action = self.sampler.sample()
        self.last_action = action.__name__
        action()

    def stop(self):
        if self.session is not None:
            self.session.close()
            self.session = None


class VirtualUser:
    """Select-and-run / think loop for one simulated user.

    Runs until ``stop_event`` is set or ``iterations`` (if given) have been
    executed. An action always runs to completion; only the think-time pause
    is interrupted by the stop event. A failing iteration is logged and the
    loop moves on to THINK; nothing is retried.
    """

    def __init__(self, driver: Driver, think_min: float = 1.0, think_max: float = 10.0,
                 rng: random.Random = None, stop_event: threading.Event = None, name: str = "vu"):
        self.driver = driver
        self.think_min = think_min
        self.think_max = think_max
        self.rng = rng or random.Random()
        self.stop_event = stop_event or threading.Event()
        self.name = name
        self.state = State.SELECT_AND_RUN
        self.iterations = 0
        self.failures = 0

    def think_time(self) -> float:
        d = self.think_min + self.rng.random() * (self.think_max - self.think_min)
        return d if d < self.think_max else self.think_min

    def step(self) -> bool:
        """Advance one state transition. Returns False once the user should stop."""
        if self.state is State.SELECT_AND_RUN:
            try:
                self.driver.run_iteration()
            except Exception as e:
                self.failures += 1
                logger.warning("%s: iteration failed: %s", self.name, e)
            self.iterations += 1
            self.state = State.THINK
            return True
        if self.stop_event.wait(self.think_time()):
            return False
        self.state = State.SELECT_AND_RUN
        return True

    def run(self, iterations: Optional[int] = None):
        self.driver.start()
        try:
            while not self.stop_event.is_set():
                if iterations is not None and self.iterations >= iterations:
                    break
                if not self.step():
                    break
        finally:
            self.driver.stop()
        logger.debug("%s: stopped after %d iterations (%d failed)", self.name, self.iterations, self.failures)
