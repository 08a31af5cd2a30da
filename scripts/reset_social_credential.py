#!/usr/bin/env python3
"""Reset a Farcaster account's secret to the current credential variant.

Usage:
    python scripts/reset_social_credential.py <fid> [--username <handle>]

Requires SESSION_STORE__SERVICE_ROLE_KEY.
"""

import argparse
import asyncio
import sys

import logfire

from faragent.application.usecase.admin import ResetSocialCredentialUseCase
from faragent.application.usecase.admin.reset_social_credential import (
    ResetSocialCredentialRequest,
)
from faragent.config import Settings
from faragent.util.di.container import create_container
from faragent.util.observability import configure_logfire


async def reset(fid: int, username: str | None) -> None:
    container = create_container()
    try:
        async with container() as request_container:
            use_case = await request_container.get(ResetSocialCredentialUseCase)
            response = await use_case.execute(
                ResetSocialCredentialRequest(fid=fid, username=username)
            )
        logfire.info(
            "Social credential reset",
            account_id=response.account_id,
            identity_key=response.identity_key,
            variant=response.variant.value,
        )
    finally:
        await container.close()


def main() -> int:
    """Run the reset and log any errors to Logfire."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("fid", type=int)
    parser.add_argument("--username", default=None)
    args = parser.parse_args()

    settings = Settings()
    configure_logfire(settings)

    try:
        asyncio.run(reset(args.fid, args.username))
        return 0
    except Exception as e:
        logfire.error(
            "Social credential reset failed",
            fid=args.fid,
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
