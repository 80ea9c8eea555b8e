import os, re
from dataclasses import dataclass, field, replace

import yaml
from jsonschema import validate, ValidationError

ACTION_NAMES = ("index", "set_currency", "browse_product", "view_cart", "add_to_cart", "checkout")

WEIGHTS_SCHEMA = {
    "type": "object",
    "required": ["actions"],
    "properties": {
        "actions": {
            "type": "object",
            "propertyNames": {"enum": list(ACTION_NAMES)},
            "additionalProperties": {"type": "number", "exclusiveMinimum": 0},
        }
    },
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class LoadgenConfig:
    base_url: str = "http://frontend:80"
    users: int = 10
    duration: str = "1m"
    currency_service_addr: str = "currencyservice:7000"
    think_time_min: float = 1.0
    think_time_max: float = 10.0
    checkout_pause: float = 1.0
    request_timeout: float = 10.0
    weights: dict = field(default_factory=lambda: {name: 1.0 for name in ACTION_NAMES})
    log_level: str = "INFO"

    @property
    def duration_seconds(self) -> float:
        return parse_duration(self.duration)

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def with_overrides(self, **changes) -> "LoadgenConfig":
        """Copy with the non-None keyword arguments applied, re-validated."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if "base_url" in changes:
            changes["base_url"] = changes["base_url"].rstrip("/")
        cfg = replace(self, **changes)
        _check(cfg)
        return cfg


def parse_duration(value) -> float:
    """Parse a k6-style duration ("90s", "1m", "1h30m", "500ms") into seconds.

    A bare number is taken as seconds.
    """
    text = str(value).strip().lower()
    try:
        return float(text)
    except ValueError:
        pass
    pos, total = 0, 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
        pos = m.end()
    if not text or pos != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total


def load_weights(path: str) -> dict:
    try:
        with open(path) as fh:
            doc = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read weights file {path}: {e}") from e
    try:
        validate(doc, WEIGHTS_SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"invalid weights file {path}: {e.message}") from e
    weights = {name: 1.0 for name in ACTION_NAMES}
    weights.update({k: float(v) for k, v in doc["actions"].items()})
    return weights


def _int(name, default):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _float(name, default):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _check(cfg: LoadgenConfig) -> None:
    if cfg.users <= 0:
        raise ConfigError(f"USERS must be positive, got {cfg.users}")
    if parse_duration(cfg.duration) <= 0:
        raise ConfigError(f"DURATION must be positive, got {cfg.duration!r}")
    if not 0 <= cfg.think_time_min < cfg.think_time_max:
        raise ConfigError("THINK_TIME_MIN must be >= 0 and below THINK_TIME_MAX")
    if cfg.request_timeout <= 0:
        raise ConfigError("REQUEST_TIMEOUT must be positive")


def load_config() -> LoadgenConfig:
    weights_file = os.getenv("WEIGHTS_FILE")
    cfg = LoadgenConfig(
        base_url=(os.getenv("BASE_URL") or "http://frontend:80").rstrip("/"),
        users=_int("USERS", 10),
        duration=os.getenv("DURATION") or "1m",
        currency_service_addr=os.getenv("CURRENCY_SERVICE_ADDR") or "currencyservice:7000",
        think_time_min=_float("THINK_TIME_MIN", 1.0),
        think_time_max=_float("THINK_TIME_MAX", 10.0),
        checkout_pause=_float("CHECKOUT_PAUSE", 1.0),
        request_timeout=_float("REQUEST_TIMEOUT", 10.0),
        weights=load_weights(weights_file) if weights_file else {name: 1.0 for name in ACTION_NAMES},
        log_level=os.getenv("LOG_LEVEL") or "INFO",
    )
    _check(cfg)
    return cfg
