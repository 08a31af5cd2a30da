"""Authentication use cases."""

from .sign_out import SignOutUseCase

__all__ = ["SignOutUseCase"]
