import argparse, logging, sys

import grpc

from .config import ConfigError, load_config
from .probe import CurrencyProbe
from .runner import LoadRunner


def parse_args(argv=None):
    ap = argparse.ArgumentParser(prog="shopload", description="Synthetic shopper traffic for the demo shop frontend.")
    ap.add_argument("--probe", action="store_true", help="call CurrencyService/GetSupportedCurrencies once and exit")
    ap.add_argument("--users", type=int, help="override USERS")
    ap.add_argument("--duration", help="override DURATION, e.g. 30s, 5m, 1h30m")
    ap.add_argument("--iterations", type=int, help="stop each user after this many actions")
    ap.add_argument("--base-url", help="override BASE_URL")
    ap.add_argument("--log-level", help="override LOG_LEVEL (INFO, DEBUG, ...)")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        if args.iterations is not None and args.iterations < 0:
            raise ConfigError(f"--iterations must not be negative, got {args.iterations}")
        cfg = load_config().with_overrides(
            users=args.users, duration=args.duration, base_url=args.base_url, log_level=args.log_level,
        )
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logging.error("configuration error: %s", e)
        return 1

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    if args.probe:
        try:
            CurrencyProbe(cfg).run()
        except grpc.RpcError as e:
            logging.error("probe failed: %s", e)
            return 1
        return 0

    LoadRunner(cfg, iterations=args.iterations).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
