"""Filesystem-backed tagged-collection index."""

from .errors import CollectionError, CollectionIOError, InvalidInputError, NotFoundError
from .identifiers import DIGEST_SIZE, MovieId
from .index import Collection
from .loader import canonicalize, scan_movies, scan_tags
from .locking import ReadWriteLock, SharedCollection
from .models import POSTER_FILENAME, CollectionSummary, Movie

__all__ = [
    "Collection",
    "CollectionError",
    "CollectionIOError",
    "CollectionSummary",
    "DIGEST_SIZE",
    "InvalidInputError",
    "Movie",
    "MovieId",
    "NotFoundError",
    "POSTER_FILENAME",
    "ReadWriteLock",
    "SharedCollection",
    "canonicalize",
    "scan_movies",
    "scan_tags",
]
