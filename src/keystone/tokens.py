"""Static API tokens for the admin user."""

from __future__ import annotations

import logging
import secrets

from keystone.integrations.directus import DirectusClient, DirectusRequestError

logger = logging.getLogger(__name__)


async def generate_token(client: DirectusClient) -> str:
    """Give the authenticated user a fresh random static token.

    The token is 32 random bytes, hex encoded (64 characters).  Any previous
    static token for the user stops working.

    Raises:
        DirectusRequestError: If the user cannot be read or updated.
    """
    user = await client.read_me()
    token = secrets.token_hex(32)

    r = await client.update_user(user["id"], {"token": token})
    if not r.ok:
        raise DirectusRequestError(f"Could not update user token: {r.describe()}", r)

    logger.info("Static token set for user %s", user.get("email") or user["id"])
    return token
