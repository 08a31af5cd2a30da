"""Admin use cases."""

from .reset_social_credential import ResetSocialCredentialUseCase

__all__ = ["ResetSocialCredentialUseCase"]
