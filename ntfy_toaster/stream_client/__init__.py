"""
Topic stream client: HTTP reader, reconnecting subscription, dispatch channel.
"""
from ntfy_toaster.stream_client.channel import DispatchChannel
from ntfy_toaster.stream_client.reader import (
    Continuing,
    Ended,
    Failed,
    ReadResult,
    StreamReader,
)
from ntfy_toaster.stream_client.subscription import (
    SubscriptionState,
    SubscriptionStats,
    TopicSubscription,
)

__all__ = [
    "Continuing",
    "DispatchChannel",
    "Ended",
    "Failed",
    "ReadResult",
    "StreamReader",
    "SubscriptionState",
    "SubscriptionStats",
    "TopicSubscription",
]
