"""Clients for hosted source-control services."""

from commitwindow.remote.base import RepositoryHandle, SourceHostClient
from commitwindow.remote.bitbucket import BitbucketClient, BitbucketRepository
from commitwindow.remote.errors import (
    AuthError,
    FetchTimeoutError,
    NetworkError,
    NotFoundError,
    ParseError,
    RetriesExhaustedError,
    SourceHostError,
    TransientFetchError,
)

__all__ = [
    "RepositoryHandle",
    "SourceHostClient",
    "BitbucketClient",
    "BitbucketRepository",
    "AuthError",
    "FetchTimeoutError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "RetriesExhaustedError",
    "SourceHostError",
    "TransientFetchError",
]
