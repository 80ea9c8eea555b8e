import logging

import grpc
import pytest

from loadgen.config import LoadgenConfig
from loadgen.probe import METHOD, CurrencyProbe, Empty, GetSupportedCurrenciesResponse


class FakeChannel:
    def __init__(self, target, codes=("EUR", "USD"), error=None):
        self.target = target
        self.codes = codes
        self.error = error
        self.closed = False
        self.requests = []

    def unary_unary(self, method, request_serializer, response_deserializer):
        def call(request, timeout=None):
            self.requests.append((method, request_serializer(request), timeout))
            if self.error:
                raise self.error
            reply = GetSupportedCurrenciesResponse(currency_codes=list(self.codes))
            return response_deserializer(reply.SerializeToString())
        return call

    def close(self):
        self.closed = True


def test_probe_calls_once_logs_closes_and_pauses(caplog):
    channels, pauses = [], []

    def factory(target):
        channels.append(FakeChannel(target))
        return channels[-1]

    cfg = LoadgenConfig()
    with caplog.at_level(logging.INFO, logger="loadgen.probe"):
        response = CurrencyProbe(cfg, channel_factory=factory, sleep=pauses.append).run()

    (channel,) = channels
    assert channel.target == "currencyservice:7000"
    assert channel.requests == [(METHOD, b"", cfg.request_timeout)]
    assert list(response.currency_codes) == ["EUR", "USD"]
    assert channel.closed
    assert pauses == [1.0]
    assert '"EUR"' in caplog.text and "response:" in caplog.text


def test_probe_failure_propagates_after_closing():
    channel = FakeChannel("x", error=grpc.RpcError("unavailable"))
    pauses = []
    with pytest.raises(grpc.RpcError):
        CurrencyProbe(LoadgenConfig(), channel_factory=lambda target: channel, sleep=pauses.append).run()
    assert channel.closed
    assert pauses == []


def test_empty_request_serializes_to_nothing():
    assert Empty().SerializeToString() == b""
