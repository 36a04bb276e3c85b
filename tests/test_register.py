"""Test FCM registration, key generation and credential storage."""

from __future__ import annotations

import base64
import json
from pathlib import Path
from unittest.mock import MagicMock

import aiohttp
import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from push_receiver.errors import (
    PushConnectionError,
    PushResponseError,
    PushTimeout,
)
from push_receiver.register import (
    FCM_SUBSCRIBE,
    FcmRegistrar,
    create_keys,
    register_fcm,
    urlsafe_b64,
)
from push_receiver.store import CredentialStore

from .conftest import create_mock_response


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


class TestCreateKeys:
    """Tests for create_keys()."""

    def test_key_sizes(self) -> None:
        """Test raw key material has the expected lengths."""
        keys = create_keys("1234")

        assert len(_b64decode(keys.private_key)) == 32
        assert len(_b64decode(keys.public_key)) == 65
        assert _b64decode(keys.public_key)[0] == 0x04
        assert len(_b64decode(keys.auth_secret)) == 16
        assert keys.authorized_entity == "1234"

    def test_urlsafe_without_padding(self) -> None:
        """Test encoded values use the URL-safe alphabet and no padding."""
        keys = create_keys()
        for value in (keys.private_key, keys.public_key, keys.auth_secret):
            assert "=" not in value
            assert "+" not in value
            assert "/" not in value

    def test_public_key_matches_private(self) -> None:
        """Test the public point is derived from the private scalar."""
        keys = create_keys()
        scalar = int.from_bytes(_b64decode(keys.private_key), "big")
        derived = ec.derive_private_key(scalar, ec.SECP256R1()).public_key()
        point = ec.EllipticCurvePublicKey.from_encoded_point(
            ec.SECP256R1(), _b64decode(keys.public_key)
        )
        assert derived.public_numbers() == point.public_numbers()

    def test_keys_are_random(self) -> None:
        """Test two calls give different keys."""
        assert create_keys() != create_keys()

    def test_urlsafe_b64(self) -> None:
        """Test padding is stripped and the URL-safe alphabet used."""
        assert urlsafe_b64(b"\xfb\xff") == "-_8"


class TestFcmRegistrar:
    """Tests for FcmRegistrar.subscribe()."""

    async def test_subscribe_success(self, mock_session: MagicMock) -> None:
        """Test form fields and decoded response."""
        keys = create_keys("sender")
        mock_session.post.return_value = create_mock_response(
            status=200, json_data={"token": "fcm-token", "pushSet": "set"}
        )

        result = await FcmRegistrar(mock_session).subscribe("sender", "gcm-token", keys)

        assert result == {"token": "fcm-token", "pushSet": "set"}
        call = mock_session.post.call_args
        assert call.args[0] == FCM_SUBSCRIBE
        assert call.kwargs["data"] == {
            "authorized_entity": "sender",
            "endpoint": "https://fcm.googleapis.com/fcm/send/gcm-token",
            "encryption_key": keys.public_key,
            "encryption_auth": keys.auth_secret,
        }
        assert call.kwargs["headers"] == {
            "Content-Type": "application/x-www-form-urlencoded"
        }

    async def test_subscribe_non_200(self, mock_session: MagicMock) -> None:
        """Test non-200 raises PushResponseError with the status."""
        mock_session.post.return_value = create_mock_response(
            status=401, text_data="Unauthorized"
        )

        with pytest.raises(PushResponseError, match="Unauthorized") as exc_info:
            await FcmRegistrar(mock_session).subscribe("s", "t", create_keys())

        assert exc_info.value.status == 401

    async def test_subscribe_timeout(self, mock_session: MagicMock) -> None:
        """Test timeouts raise PushTimeout."""
        mock_session.post.side_effect = TimeoutError()

        with pytest.raises(PushTimeout, match="timed out"):
            await FcmRegistrar(mock_session).subscribe("s", "t", create_keys())

    async def test_subscribe_client_error(self, mock_session: MagicMock) -> None:
        """Test aiohttp errors raise PushConnectionError."""
        mock_session.post.side_effect = aiohttp.ClientError("down")

        with pytest.raises(PushConnectionError, match="failed"):
            await FcmRegistrar(mock_session).subscribe("s", "t", create_keys())


class TestRegisterFcm:
    """Tests for register_fcm()."""

    async def test_register_persists(
        self, mock_session: MagicMock, tmp_path: Path
    ) -> None:
        """Test keys and FCM response end up in the credential store."""
        store = CredentialStore(tmp_path / "creds.json")
        mock_session.post.return_value = create_mock_response(
            status=200, json_data={"token": "fcm-token"}
        )

        keys, fcm = await register_fcm(mock_session, "sender", "gcm", store=store)

        saved = store.load()
        assert saved["keys"] == keys.to_dict()
        assert saved["fcm"] == fcm == {"token": "fcm-token"}

    async def test_register_keys_saved_before_failure(
        self, mock_session: MagicMock, tmp_path: Path
    ) -> None:
        """Test keys are stored even when the subscribe call fails."""
        store = CredentialStore(tmp_path / "creds.json")
        mock_session.post.return_value = create_mock_response(status=500, text_data="")

        with pytest.raises(PushResponseError):
            await register_fcm(mock_session, "sender", "gcm", store=store)

        saved = store.load()
        assert "keys" in saved
        assert "fcm" not in saved

    async def test_register_without_store(self, mock_session: MagicMock) -> None:
        """Test registration works without persistence."""
        mock_session.post.return_value = create_mock_response(
            status=200, json_data={"token": "x"}
        )

        keys, fcm = await register_fcm(mock_session, "sender", "gcm")

        assert keys.authorized_entity == "sender"
        assert fcm == {"token": "x"}


class TestCredentialStore:
    """Tests for CredentialStore."""

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file loads as empty."""
        assert CredentialStore(tmp_path / "none.json").load() == {}

    def test_sections_kept_separately(self, tmp_path: Path) -> None:
        """Test saving one section keeps the other."""
        store = CredentialStore(tmp_path / "nested" / "creds.json")
        store.save_keys({"public_key": "abc"})
        store.save_fcm({"token": "t"})

        data = json.loads((tmp_path / "nested" / "creds.json").read_text())
        assert data == {"keys": {"public_key": "abc"}, "fcm": {"token": "t"}}
        assert not (tmp_path / "nested" / "creds.json.tmp").exists()

    def test_non_object_rejected(self, tmp_path: Path) -> None:
        """Test a file that is not a JSON object is rejected."""
        path = tmp_path / "creds.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError, match="JSON object"):
            CredentialStore(path).load()
