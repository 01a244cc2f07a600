"""Adapters for the remote spreadsheet API."""
from .base import RemoteStore
from .schemas import MutationAction, RemoteEnvelope
from .http_store import HttpRemoteStore
from .plants import collection_for_plant, plant_collections
from .collections import CollectionService
