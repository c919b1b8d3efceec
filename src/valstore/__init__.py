"""valstore: observable key-path state container for Python."""

from importlib.metadata import version as _version

__version__ = _version("valstore")

from valstore.errors import ValstoreError, ConfigurationError, ProtocolError
from valstore._paths import WILDCARD
from valstore._merge import clone, merge_deep
from valstore._delivery import Delivery
from valstore.subscription import Subscriber, SubscriptionRegistry
from valstore.store import Store, Transaction
from valstore.registry import StoreRegistry
# textual NOT auto-imported — opt-in only

__all__ = [
    "Store",
    "Transaction",
    "Delivery",
    "Subscriber",
    "SubscriptionRegistry",
    "StoreRegistry",
    "clone",
    "merge_deep",
    "WILDCARD",
    "ValstoreError",
    "ConfigurationError",
    "ProtocolError",
]
