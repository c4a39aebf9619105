"""Access to the external record store."""
from datastore.base import (
    Datastore,
    DatastoreError,
    Filter,
    Order,
    RecordNotFound,
    Row,
    eq,
    gt,
    gte,
    lt,
    lte,
    neq,
)
from datastore.memory import MemoryDatastore
from datastore.rest import RestDatastore

__all__ = [
    "Datastore",
    "DatastoreError",
    "Filter",
    "MemoryDatastore",
    "Order",
    "RecordNotFound",
    "RestDatastore",
    "Row",
    "eq",
    "gt",
    "gte",
    "lt",
    "lte",
    "neq",
]
