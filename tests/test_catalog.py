import random

import pytest

from loadgen.catalog import CURRENCIES, PRODUCTS, QUANTITIES, ShopActions, checkout_form
from loadgen.config import ACTION_NAMES
from loadgen.encoding import FORM_CONTENT_TYPE, form_encode
from urllib.parse import parse_qsl


@pytest.fixture
def pauses():
    return []


@pytest.fixture
def actions(client, cfg, pauses):
    return ShopActions(client, cfg, rng=random.Random(7), sleep=pauses.append)


def test_index_and_view_cart(actions, client):
    actions.index()
    actions.view_cart()
    assert [(c.method, c.url) for c in client.calls] == [
        ("GET", "http://shop.test/"),
        ("GET", "http://shop.test/cart"),
    ]


def test_set_currency_posts_form(actions, client):
    actions.set_currency()
    (call,) = client.calls
    assert call.method == "POST"
    assert call.url == "http://shop.test/setCurrency"
    assert call.headers == {"Content-Type": FORM_CONTENT_TYPE}
    field, value = call.data.split("=")
    assert field == "currency_code" and value in CURRENCIES


def test_browse_product_picks_from_catalog(actions, client):
    for _ in range(20):
        actions.browse_product()
    ids = {c.url.rsplit("/", 1)[1] for c in client.calls}
    assert ids <= set(PRODUCTS)
    assert all(c.url.startswith("http://shop.test/product/") for c in client.calls)


def test_add_to_cart_views_then_posts(actions, client):
    for _ in range(25):
        client.calls.clear()
        actions.add_to_cart()
        get, post = client.calls
        assert get.method == "GET" and post.method == "POST"
        assert post.url == "http://shop.test/cart"
        body = dict(parse_qsl(post.data))
        assert get.url == f"http://shop.test/product/{body['product_id']}"
        assert int(body["quantity"]) in QUANTITIES
        assert post.data == f"product_id={body['product_id']}&quantity={body['quantity']}"


def test_checkout_three_calls_in_order_then_pause(actions, client, pauses, cfg):
    actions.checkout()
    assert [c.method for c in client.calls] == ["GET", "POST", "POST"]
    assert client.calls[1].url == "http://shop.test/cart"
    assert client.calls[2].url == "http://shop.test/cart/checkout"
    assert client.calls[2].data == form_encode(checkout_form())
    assert pauses == [cfg.checkout_pause]


def test_checkout_form_fields():
    assert list(checkout_form()) == [
        "email", "street_address", "zip_code", "city", "state", "country",
        "credit_card_number", "credit_card_expiration_month",
        "credit_card_expiration_year", "credit_card_cvv",
    ]


def test_request_kwargs_and_names(client, cfg):
    plain = ShopActions(client, cfg, request_kwargs={"timeout": 3})
    plain.browse_product()
    assert client.calls[-1].kwargs == {"timeout": 3}

    named = ShopActions(client, cfg, named=True)
    named.browse_product()
    named.index()
    assert client.calls[-2].kwargs == {"name": "/product/[id]"}
    assert client.calls[-1].kwargs == {}


def test_sampler_covers_every_action(actions):
    sampler = actions.sampler()
    assert len(sampler) == len(ACTION_NAMES)
    picked = {sampler.sample().__name__ for _ in range(500)}
    assert picked == set(ACTION_NAMES)


def test_sampler_honours_configured_weights(client, cfg):
    weights = {name: 1.0 for name in ACTION_NAMES}
    weights["view_cart"] = 1000.0
    actions = ShopActions(client, cfg.with_overrides(weights=weights), rng=random.Random(3))
    sampler = actions.sampler()
    picked = [sampler.sample().__name__ for _ in range(200)]
    assert picked.count("view_cart") > 180


def test_unknown_action(actions):
    with pytest.raises(KeyError):
        actions.action("refund")


def test_locust_named_requests_do_not_log_statuses(client, cfg, caplog):
    class Failing(type(client)):
        def get(self, url, **kwargs):
            super().get(url, **kwargs)
            return type("Reply", (), {"ok": False, "status_code": 500})()

    actions = ShopActions(Failing(), cfg, named=True)
    with caplog.at_level("DEBUG", logger="loadgen.catalog"):
        actions.index()
    assert "-> 500" not in caplog.text
