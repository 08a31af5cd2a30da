"""Domain services."""

from .account_linker import AccountLinker, LinkResult
from .base import Service
from .credential_service import CredentialService
from .link_service import LinkService
from .notifier import LinkNotifier
from .session_service import SessionService, SessionStore
from .signature_service import ProviderRpcError, SignatureService, WalletProvider
from .signer_service import FarcasterProfile, SignerClient, SignerInfo

__all__ = [
    "AccountLinker",
    "CredentialService",
    "FarcasterProfile",
    "LinkNotifier",
    "LinkResult",
    "LinkService",
    "ProviderRpcError",
    "Service",
    "SessionService",
    "SessionStore",
    "SignatureService",
    "SignerClient",
    "SignerInfo",
    "WalletProvider",
]
