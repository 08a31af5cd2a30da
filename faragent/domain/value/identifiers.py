"""Strongly typed identifiers for FarAgent domain entities."""

from typing import NewType
from uuid import UUID

# Session Store account id (Supabase auth user id)
AccountId = NewType("AccountId", UUID)

# One Farcaster sign-in attempt, generated at start()
SignInSessionId = NewType("SignInSessionId", UUID)
