import logging, random, threading, time

from .config import LoadgenConfig
from .user import ShopperDriver, VirtualUser

logger = logging.getLogger(__name__)


class LoadRunner:
    """Runs ``cfg.users`` independent virtual users on threads for ``cfg.duration``."""

    def __init__(self, cfg: LoadgenConfig, driver_factory=None, iterations=None):
        self.cfg = cfg
        self.driver_factory = driver_factory or (lambda rng: ShopperDriver(cfg, rng=rng))
        self.iterations = iterations
        self.stop_event = threading.Event()
        self.users = []
        self.threads = []

    def start(self):
        for i in range(self.cfg.users):
            rng = random.Random()
            vu = VirtualUser(
                self.driver_factory(rng),
                think_min=self.cfg.think_time_min,
                think_max=self.cfg.think_time_max,
                rng=rng,
                stop_event=self.stop_event,
                name=f"vu-{i}",
            )
            t = threading.Thread(target=vu.run, kwargs={"iterations": self.iterations},
                                 name=vu.name, daemon=True)
            self.users.append(vu)
            self.threads.append(t)
            t.start()
        logger.info("started %d virtual users against %s", len(self.users), self.cfg.base_url)

    def stop(self):
        self.stop_event.set()
        # in-flight actions finish on their own
        for t in self.threads:
            t.join()

    def run(self):
        duration = self.cfg.duration_seconds
        self.start()
        deadline = time.monotonic() + duration
        try:
            while time.monotonic() < deadline and any(t.is_alive() for t in self.threads):
                time.sleep(min(0.5, max(0.0, deadline - time.monotonic())))
        except KeyboardInterrupt:
            logger.info("interrupted, stopping virtual users...")
        finally:
            self.stop()
        done = sum(vu.iterations for vu in self.users)
        failed = sum(vu.failures for vu in self.users)
        logger.info("finished: %d iterations, %d failed", done, failed)
        return done, failed
