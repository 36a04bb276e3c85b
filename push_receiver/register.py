"""FCM registration: key generation and subscription over HTTPS."""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any

import aiohttp
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import (
    PushConnectionError,
    PushResponseError,
    PushTimeout,
)
from .store import CredentialStore

_LOGGER = logging.getLogger(__name__)

FCM_SUBSCRIBE = "https://fcm.googleapis.com/fcm/connect/subscribe"
FCM_ENDPOINT = "https://fcm.googleapis.com/fcm/send"

AUTH_SECRET_SIZE = 16


def urlsafe_b64(data: bytes) -> str:
    """Base64url-encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


@dataclass(frozen=True, slots=True)
class PushKeys:
    """Web push encryption keys, base64url-encoded without padding."""

    private_key: str
    public_key: str
    auth_secret: str
    authorized_entity: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def create_keys(authorized_entity: str | None = None) -> PushKeys:
    """Generate a P-256 ECDH key pair and a random auth secret.

    Args:
        authorized_entity: Sender ID the keys are created for

    Returns:
        Raw private scalar, uncompressed public point and 16-byte auth secret
    """
    private_key = ec.generate_private_key(ec.SECP256R1())
    private_bytes = private_key.private_numbers().private_value.to_bytes(32, "big")
    public_bytes = private_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return PushKeys(
        private_key=urlsafe_b64(private_bytes),
        public_key=urlsafe_b64(public_bytes),
        auth_secret=urlsafe_b64(os.urandom(AUTH_SECRET_SIZE)),
        authorized_entity=authorized_entity,
    )


class FcmRegistrar:
    """HTTP client wrapper for the FCM subscribe endpoint."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        subscribe_url: str = FCM_SUBSCRIBE,
        endpoint_url: str = FCM_ENDPOINT,
        timeout: float = 20.0,
    ) -> None:
        self._session = session
        self._subscribe_url = subscribe_url
        self._endpoint_url = endpoint_url
        self._timeout = timeout

    async def subscribe(
        self, sender_id: str, token: str, keys: PushKeys
    ) -> dict[str, Any]:
        """Subscribe a GCM token to FCM with the given encryption keys.

        Returns:
            Decoded JSON response (FCM token and push set)

        Raises:
            PushResponseError: If FCM returns a non-200 status
            PushTimeout: If the request times out
            PushConnectionError: If the request fails
        """
        form = {
            "authorized_entity": sender_id,
            "endpoint": f"{self._endpoint_url}/{token}",
            "encryption_key": keys.public_key,
            "encryption_auth": keys.auth_secret,
        }
        try:
            async with self._session.post(
                self._subscribe_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise PushResponseError(
                        resp.status, f"FCM subscribe failed: {body[:200]}"
                    )
                return await resp.json(content_type=None)
        except TimeoutError as err:
            raise PushTimeout("FCM subscribe request timed out") from err
        except aiohttp.ClientError as err:
            raise PushConnectionError("FCM subscribe request failed") from err


async def register_fcm(
    session: aiohttp.ClientSession,
    sender_id: str,
    token: str,
    *,
    store: CredentialStore | None = None,
) -> tuple[PushKeys, dict[str, Any]]:
    """Create keys, subscribe to FCM and persist both.

    Args:
        session: aiohttp session used for the request
        sender_id: Sender ID (authorized entity) to subscribe for
        token: GCM registration token
        store: Optional credential store to save keys and FCM response

    Returns:
        Generated keys and the FCM response
    """
    keys = create_keys(sender_id)
    if store is not None:
        store.save_keys(keys.to_dict())

    fcm = await FcmRegistrar(session).subscribe(sender_id, token, keys)
    _LOGGER.info("Registered with FCM for sender %s", sender_id)

    if store is not None:
        store.save_fcm(fcm)
    return keys, fcm
