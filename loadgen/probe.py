import logging, time

import grpc
from google.protobuf import descriptor_pb2, descriptor_pool, json_format, message_factory

from .config import LoadgenConfig

logger = logging.getLogger(__name__)

METHOD = "/hipstershop.CurrencyService/GetSupportedCurrencies"


def _currency_messages():
    """Message classes for the two types the probe touches, from an in-memory descriptor.

    Mirrors hipstershop's demo.proto: ``Empty`` and
    ``GetSupportedCurrenciesResponse { repeated string currency_codes = 1; }``.
    """
    f = descriptor_pb2.FieldDescriptorProto
    fdp = descriptor_pb2.FileDescriptorProto(name="loadgen/currency_probe.proto",
                                             package="hipstershop", syntax="proto3")
    fdp.message_type.add(name="Empty")
    resp = fdp.message_type.add(name="GetSupportedCurrenciesResponse")
    resp.field.add(name="currency_codes", json_name="currencyCodes", number=1,
                   type=f.TYPE_STRING, label=f.LABEL_REPEATED)
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(fdp.SerializeToString())
    return (
        message_factory.GetMessageClass(pool.FindMessageTypeByName("hipstershop.Empty")),
        message_factory.GetMessageClass(pool.FindMessageTypeByName("hipstershop.GetSupportedCurrenciesResponse")),
    )


Empty, GetSupportedCurrenciesResponse = _currency_messages()


class CurrencyProbe:
    """Single-shot call to the currency service: connect, call, log, close, pause.

    Connection and RPC failures propagate as ``grpc.RpcError``.
    """

    def __init__(self, cfg: LoadgenConfig, channel_factory=grpc.insecure_channel, sleep=time.sleep):
        self.cfg = cfg
        self.channel_factory = channel_factory
        self.sleep = sleep

    def run(self):
        logger.debug("connecting to %s (plaintext)", self.cfg.currency_service_addr)
        channel = self.channel_factory(self.cfg.currency_service_addr)
        try:
            call = channel.unary_unary(
                METHOD,
                request_serializer=Empty.SerializeToString,
                response_deserializer=GetSupportedCurrenciesResponse.FromString,
            )
            response = call(Empty(), timeout=self.cfg.request_timeout)
            logger.info("response: %s", json_format.MessageToJson(response, indent=None))
        finally:
            channel.close()
        self.sleep(self.cfg.checkout_pause)
        return response
