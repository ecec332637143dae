"""Keep a local snapshot of a Consul KV prefix and publish change sets."""

from kvwatch.application.listeners import CallbackListener, ListenerRegistry
from kvwatch.application.ports.listener import UpdateListener
from kvwatch.application.ports.listing_client import KvListingClient
from kvwatch.domain.diff import WatchedUpdateResult, compute_update
from kvwatch.domain.entry import KeyValueEntry, KeyValueListing
from kvwatch.runtime.watcher import WatchedConfigurationSource, WatcherState

__all__ = [
    "CallbackListener",
    "KeyValueEntry",
    "KeyValueListing",
    "KvListingClient",
    "ListenerRegistry",
    "UpdateListener",
    "WatchedConfigurationSource",
    "WatchedUpdateResult",
    "WatcherState",
    "compute_update",
]
