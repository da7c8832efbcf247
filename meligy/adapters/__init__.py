"""Adapters — one per kind of reply the router can produce."""

from meligy.adapters.conversation import ConversationalAdapter
from meligy.adapters.image import ImageService
from meligy.adapters.search import SearchService
from meligy.adapters.table import TableGenerator

__all__ = [
    "ConversationalAdapter",
    "ImageService",
    "SearchService",
    "TableGenerator",
]
