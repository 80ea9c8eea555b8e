import logging, random, time

from .config import ACTION_NAMES, LoadgenConfig
from .encoding import FORM_CONTENT_TYPE, form_encode
from .sampler import WeightedSampler

logger = logging.getLogger(__name__)

PRODUCTS = (
    "0PUK6V6EV0", "1YMWWN1N4O", "2ZYFJ3GM2N", "66VCHSJNUP",
    "6E92ZMYYFZ", "9SIQT8TOJO", "L9ECAV7KIM", "LS4PSXUNUM", "OLJCESPC7Z",
)

CURRENCIES = ("EUR", "USD", "JPY", "CAD")

QUANTITIES = (1, 2, 3, 4, 5, 10)


def checkout_form() -> dict:
    return {
        "email": "someone@example.com",
        "street_address": "1600 Amphitheatre Parkway",
        "zip_code": "94043",
        "city": "Mountain View",
        "state": "CA",
        "country": "United States",
        "credit_card_number": "4432-8015-6152-0454",
        "credit_card_expiration_month": "1",
        "credit_card_expiration_year": "2039",
        "credit_card_cvv": "672",
    }


class ShopActions:
    """The browsing/shopping actions a virtual user can take against the frontend.

    ``client`` is anything with requests-style ``get(url, **kw)`` and
    ``post(url, data=..., headers=..., **kw)``: a ``requests.Session`` or
    Locust's ``HttpSession``. Transport errors are left to the caller.
    """

    def __init__(self, client, cfg: LoadgenConfig, rng: random.Random = None,
                 sleep=time.sleep, request_kwargs: dict = None, named: bool = False):
        self.client = client
        self.cfg = cfg
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.request_kwargs = request_kwargs or {}
        # Locust groups stats by name; plain requests sessions reject the kwarg
        self.named = named

    def _kw(self, name):
        kw = dict(self.request_kwargs)
        if self.named and name:
            kw["name"] = name
        return kw

    def _seen(self, method, url, resp):
        # Locust records statuses itself
        if not self.named and resp is not None and not resp.ok:
            logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp

    def _get(self, path, name=None):
        url = self.cfg.url(path)
        return self._seen("GET", url, self.client.get(url, **self._kw(name)))

    def _post(self, path, data, name=None):
        url = self.cfg.url(path)
        resp = self.client.post(
            url,
            data=form_encode(data),
            headers={"Content-Type": FORM_CONTENT_TYPE},
            **self._kw(name),
        )
        return self._seen("POST", url, resp)

    def index(self):
        self._get("/")

    def set_currency(self):
        currency = self.rng.choice(CURRENCIES)
        logger.debug("setting currency %s", currency)
        self._post("/setCurrency", {"currency_code": currency})

    def browse_product(self):
        self._get(f"/product/{self.rng.choice(PRODUCTS)}", name="/product/[id]")

    def view_cart(self):
        self._get("/cart")

    def add_to_cart(self):
        product_id = self.rng.choice(PRODUCTS)
        self._get(f"/product/{product_id}", name="/product/[id]")
        quantity = self.rng.choice(QUANTITIES)
        logger.debug("adding %s x%d to cart", product_id, quantity)
        self._post("/cart", {"product_id": product_id, "quantity": quantity})

    def checkout(self):
        self.add_to_cart()
        self._post("/cart/checkout", checkout_form())
        self.sleep(self.cfg.checkout_pause)

    def action(self, name):
        if name not in ACTION_NAMES:
            raise KeyError(f"unknown action: {name}")
        return getattr(self, name)

    def sampler(self) -> WeightedSampler:
        """Sampler over this catalog's actions, weighted by ``cfg.weights``."""
        return WeightedSampler(
            [(self.action(name), self.cfg.weights.get(name, 1.0)) for name in ACTION_NAMES],
            rng=self.rng,
        )
