"""
blobauth: request signing and SAS issuance for Azure Blob Storage.

Signs outgoing REST requests with SharedKey or Azure AD bearer tokens and
builds service and user delegation SAS URLs.
"""

__version__ = "0.1.0"

from .auth.request import SignableRequest, make_request
from .client import BlobAuthClient

__all__ = ["BlobAuthClient", "SignableRequest", "make_request", "__version__"]
