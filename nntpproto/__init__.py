from .client import NNTPClient
from .engine import BaseNNTPClient, Response, encode_article
from .errors import (
    NNTPCommandRejected,
    NNTPConnectionError,
    NNTPEncodingError,
    NNTPError,
    NNTPPermanentError,
    NNTPProtocolError,
    NNTPStateError,
    NNTPSyncError,
    NNTPTemporaryError,
    NNTPUnexpectedResponse,
)
from .types import ArticlePointer, Encryption, GroupSummary, Newsgroup, StatusResponse

__all__ = [
    "ArticlePointer",
    "BaseNNTPClient",
    "Encryption",
    "GroupSummary",
    "NNTPClient",
    "NNTPCommandRejected",
    "NNTPConnectionError",
    "NNTPEncodingError",
    "NNTPError",
    "NNTPPermanentError",
    "NNTPProtocolError",
    "NNTPStateError",
    "NNTPSyncError",
    "NNTPTemporaryError",
    "NNTPUnexpectedResponse",
    "Newsgroup",
    "Response",
    "StatusResponse",
    "encode_article",
]
