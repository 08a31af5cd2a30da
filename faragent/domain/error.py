"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class NotAuthenticatedError(DomainError):
    """Raised when an operation needs a session and none (or an expired one) was given."""

    def __init__(self, message: str = "A signed-in session is required"):
        super().__init__(message)


class BindingConflictError(DomainError):
    """Raised by the Link Store when a uniqueness constraint rejects an upsert.

    Another account already holds the wallet address or Farcaster id.
    """

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field} {value} is already bound to another account")


class LinkingError(DomainError):
    """Base class for account-linking failures surfaced to the user.

    Attributes:
        code: Stable machine-readable code
        remedy: What the user can do about it
        retryable: Whether retrying the same attempt may succeed
    """

    code = "linking_error"
    retryable = False
    remedy = "Please try again."

    def __init__(self, message: str, remedy: str | None = None):
        super().__init__(message)
        self.message = message
        if remedy is not None:
            self.remedy = remedy


class ProviderUnavailableError(LinkingError):
    """No wallet provider is installed or reachable."""

    code = "provider_unavailable"
    remedy = "Install or unlock a wallet (Coinbase Wallet, MetaMask) and try again."


class SignatureDeclinedError(LinkingError):
    """The user rejected the signature request."""

    code = "signature_declined"
    remedy = "Approve the signature request in your wallet to continue."


class InvalidSignatureFormatError(LinkingError):
    """The wallet returned something that is not a usable signature."""

    code = "invalid_signature"
    remedy = "Try signing again, or use a different wallet."


class ChannelError(LinkingError):
    """The Farcaster relay channel failed and could not be recovered."""

    code = "channel_error"
    retryable = True
    remedy = "Retry the Farcaster sign-in to open a new channel."


class PayloadInvalidError(LinkingError):
    """The sign-in completed but the payload did not contain an identity."""

    code = "payload_invalid"
    remedy = "Farcaster authentication failed. Please try again."


class LinkConflictError(LinkingError):
    """The identity is bound to an account this attempt cannot access.

    Terminal: retrying the same attempt fails the same way.
    """

    code = "link_conflict"


class StoreUnavailableError(LinkingError):
    """The Session Store or Link Store could not be reached."""

    code = "store_unavailable"
    retryable = True
    remedy = "The service is temporarily unavailable. Please try again shortly."
