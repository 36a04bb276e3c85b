"""Push notification receiver for the MCS relay protocol."""

__version__ = "0.1.0"

from .config import McsConfig
from .errors import (
    IncompleteVarintError,
    PushConnectionError,
    PushDecodeError,
    PushHandshakeError,
    PushReceiverError,
    PushResponseError,
    PushTimeout,
    SchemaError,
)
from .framing import Frame, FrameAssembler, decode_frame
from .protocol import (
    MCS_HOST,
    MCS_PORT,
    MCS_VERSION,
    build_frame,
    build_login_frame,
    decode_varint,
    encode_varint,
)
from .register import FcmRegistrar, PushKeys, create_keys, register_fcm
from .schema import (
    McsTag,
    ProtobufCodec,
    Schema,
    SchemaEntry,
    build_mcs_schema,
)
from .session import ConnectionSupervisor, connect
from .state import ConnectionState, SessionStateMachine
from .store import CredentialStore

__all__ = [
    "MCS_HOST",
    "MCS_PORT",
    "MCS_VERSION",
    "ConnectionState",
    "ConnectionSupervisor",
    "CredentialStore",
    "FcmRegistrar",
    "Frame",
    "FrameAssembler",
    "IncompleteVarintError",
    "McsConfig",
    "McsTag",
    "ProtobufCodec",
    "PushConnectionError",
    "PushDecodeError",
    "PushHandshakeError",
    "PushKeys",
    "PushReceiverError",
    "PushResponseError",
    "PushTimeout",
    "Schema",
    "SchemaEntry",
    "SessionStateMachine",
    "__version__",
    "build_frame",
    "build_login_frame",
    "build_mcs_schema",
    "connect",
    "create_keys",
    "decode_frame",
    "decode_varint",
    "encode_varint",
    "register_fcm",
]
