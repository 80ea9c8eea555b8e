from locust import HttpUser, task, between

from loadgen.catalog import ShopActions
from loadgen.config import load_config

CONFIG = load_config()


class ShopperUser(HttpUser):
    host = CONFIG.base_url
    wait_time = between(CONFIG.think_time_min, CONFIG.think_time_max)

    def on_start(self):
        # --host on the locust command line wins over BASE_URL
        cfg = CONFIG.with_overrides(base_url=self.host)
        self.actions = ShopActions(self.client, cfg, named=True)
        self.sampler = self.actions.sampler()

    @task
    def shop(self):
        self.sampler.sample()()
