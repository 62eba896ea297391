from __future__ import annotations


class DeliveryError(Exception):
    """A write to a subscriber sink did not go through."""


class SinkClosedError(DeliveryError):
    pass


class SinkOverflowError(DeliveryError):
    pass


class ConnectionClosedError(DeliveryError):
    pass
