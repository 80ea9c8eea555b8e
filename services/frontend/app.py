import os, time, uuid
import uvicorn
from fastapi import FastAPI, Form, HTTPException, Request, Response
from pydantic import BaseModel, ValidationError, field_validator
from prometheus_client import Counter, Histogram, generate_latest
from fastapi.responses import PlainTextResponse

from loadgen.catalog import CURRENCIES, PRODUCTS

SESSION_COOKIE = "shop_session-id"
CURRENCY_COOKIE = "shop_currency"

app = FastAPI(title="frontend")

REQUESTS = Counter("frontend_requests_total", "Requests served by the mock frontend", ["route"])
LATENCY = Histogram("frontend_latency_seconds", "Latency of mock frontend requests", ["route"],
                    buckets=(0.001,0.005,0.01,0.05,0.1,0.5))

# session id -> {product_id: quantity}; in-memory, oldest cart evicted past MAX_CARTS
carts = {}
MAX_CARTS = int(os.getenv("MAX_CARTS", "10000"))


class AddToCart(BaseModel):
    product_id: str
    quantity: int

    @field_validator("product_id")
    @classmethod
    def known_product(cls, v):
        if v not in PRODUCTS:
            raise ValueError("unknown product")
        return v

    @field_validator("quantity")
    @classmethod
    def positive(cls, v):
        if v <= 0:
            raise ValueError("quantity must be positive")
        return v


class PlaceOrder(BaseModel):
    email: str
    street_address: str
    zip_code: int
    city: str
    state: str
    country: str
    credit_card_number: str
    credit_card_expiration_month: int
    credit_card_expiration_year: int
    credit_card_cvv: int


@app.middleware("http")
async def observe(request: Request, call_next):
    start = time.perf_counter()
    route = request.url.path if not request.url.path.startswith("/product/") else "/product/{id}"
    request.state.session_id = request.cookies.get(SESSION_COOKIE) or str(uuid.uuid4())
    response = await call_next(request)
    LATENCY.labels(route).observe(time.perf_counter()-start)
    REQUESTS.labels(route).inc()
    if SESSION_COOKIE not in request.cookies:
        response.set_cookie(SESSION_COOKIE, request.state.session_id)
    return response


def _session(request: Request):
    return request.state.session_id


def _invalid(e: ValidationError):
    raise HTTPException(422, e.errors(include_url=False, include_context=False))


@app.get("/_healthz", response_class=PlainTextResponse)
def health():
    return "ok"

@app.get("/metrics", response_class=PlainTextResponse)
def metrics():
    return generate_latest().decode()

@app.get("/")
def index(request: Request):
    return {"products": list(PRODUCTS), "currency": request.cookies.get(CURRENCY_COOKIE, "USD")}

@app.post("/setCurrency")
def set_currency(response: Response, currency_code: str = Form(...)):
    if currency_code not in CURRENCIES:
        raise HTTPException(422, "unsupported currency")
    response.set_cookie(CURRENCY_COOKIE, currency_code)
    return {"currency": currency_code}

@app.get("/product/{product_id}")
def product(product_id: str):
    if product_id not in PRODUCTS:
        raise HTTPException(404, "product not found")
    return {"id": product_id}

@app.get("/cart")
def view_cart(request: Request):
    cart = carts.get(_session(request), {})
    return {"items": [{"product_id": k, "quantity": v} for k, v in cart.items()]}

@app.post("/cart")
def add_to_cart(request: Request, product_id: str = Form(...), quantity: str = Form(...)):
    try:
        item = AddToCart(product_id=product_id, quantity=quantity)
    except ValidationError as e:
        if any(err["loc"] == ("product_id",) for err in e.errors()):
            raise HTTPException(404, "product not found")
        _invalid(e)
    sid = _session(request)
    if sid not in carts and len(carts) >= MAX_CARTS:
        carts.pop(next(iter(carts)))
    cart = carts.setdefault(sid, {})
    cart[item.product_id] = cart.get(item.product_id, 0) + item.quantity
    return {"status": "added", "product_id": item.product_id, "quantity": cart[item.product_id]}

@app.post("/cart/checkout")
async def checkout(request: Request):
    form = await request.form()
    try:
        order = PlaceOrder(**dict(form))
    except ValidationError as e:
        _invalid(e)
    items = carts.pop(_session(request), {})
    return {"order_id": str(uuid.uuid4()), "email": order.email, "items": len(items)}


def run():
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8080")))


if __name__ == "__main__":
    run()
