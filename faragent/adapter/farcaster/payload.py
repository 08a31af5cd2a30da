"""Sign-in payload extraction.

Relay and callback payloads have carried the identity in several shapes.
Each shape is a named strategy, tried in order; a payload no strategy can
read becomes Unparseable and keeps the raw payload for diagnostics.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from faragent.domain.value import SocialIdentity, WalletAddress


class ExtractionStrategy(str, Enum):
    """Where in the payload the identity was found."""

    FLAT = "flat"  # {fid, username, ...}
    METADATA = "metadata"  # {metadata: {fid, username, ...}}
    SIGNATURE_PARAMS = "signature_params"  # {signatureParams: {fid, username, ...}}


class Extracted(BaseModel):
    """Identity read from a payload."""

    strategy: ExtractionStrategy
    identity: SocialIdentity


class Unparseable(BaseModel):
    """Payload no strategy could read."""

    raw: dict[str, Any]
    reason: str

    @property
    def shape(self) -> dict[str, Any]:
        """Keys and value types only, safe to log."""
        return {
            key: sorted(value) if isinstance(value, dict) else type(value).__name__
            for key, value in self.raw.items()
        }


def _first(source: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if source.get(key) not in (None, ""):
            return source[key]
    return None


def _flat(payload: dict[str, Any]) -> dict[str, Any] | None:
    return payload


def _metadata(payload: dict[str, Any]) -> dict[str, Any] | None:
    nested = payload.get("metadata")
    return nested if isinstance(nested, dict) else None


def _signature_params(payload: dict[str, Any]) -> dict[str, Any] | None:
    nested = payload.get("signatureParams")
    return nested if isinstance(nested, dict) else None


STRATEGIES: list[
    tuple[ExtractionStrategy, Callable[[dict[str, Any]], dict[str, Any] | None]]
] = [
    (ExtractionStrategy.FLAT, _flat),
    (ExtractionStrategy.METADATA, _metadata),
    (ExtractionStrategy.SIGNATURE_PARAMS, _signature_params),
]


def _read_identity(
    source: dict[str, Any], payload: dict[str, Any]
) -> SocialIdentity | None:
    fid = _first(source, "fid")
    username = _first(source, "username")
    if fid is None or username is None:
        return None

    custody = _first(source, "custody", "custodyAddress")
    try:
        custody_address = WalletAddress(custody) if custody else None
    except ValidationError:
        custody_address = None

    try:
        return SocialIdentity(
            fid=int(fid),
            username=str(username),
            display_name=_first(source, "displayName", "display_name"),
            pfp_url=_first(source, "pfpUrl", "pfp_url"),
            custody_address=custody_address,
            # Proof material lives at the top level of every shape
            message=_first(source, "message") or _first(payload, "message"),
            signature=_first(source, "signature") or _first(payload, "signature"),
        )
    except (TypeError, ValueError, ValidationError):
        return None


def extract_identity(payload: dict[str, Any]) -> Extracted | Unparseable:
    """Read the Farcaster identity out of a completed sign-in payload.

    Args:
        payload: Relay status body or callback body

    Returns:
        Extracted identity with the strategy that matched, or Unparseable
    """
    if not isinstance(payload, dict):
        return Unparseable(raw={"value": payload}, reason="payload is not an object")

    for strategy, locate in STRATEGIES:
        source = locate(payload)
        if source is None:
            continue
        identity = _read_identity(source, payload)
        if identity is not None:
            return Extracted(strategy=strategy, identity=identity)

    return Unparseable(raw=payload, reason="no fid and username found")
