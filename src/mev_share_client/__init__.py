"""
MEV-Share client package.

Signed bundle submission and event streaming for the Flashbots matchmaker.
"""

from .client import MatchmakerClient
from .config import ClientConfig
from .errors import (
    ConfigurationError,
    DecodeError,
    MatchmakerError,
    RelayError,
    SigningError,
    TransportError,
)
from .event_stream import EventStreamDispatcher
from .events import (
    EventTransaction,
    EventTransactionLog,
    FunctionSelector,
    PendingBundle,
    PendingTransaction,
    PendingTxOrBundle,
    RawEvent,
    StreamingEventType,
)
from .models import (
    Bundle,
    HintPreference,
    InclusionParams,
    PrivacyParams,
    ProtocolVersion,
    Refund,
    RefundConfig,
    SendBundleResponse,
    SignedTxBody,
    TransactionOptions,
    TxHashBody,
    ValidityParams,
)
from .networks import MatchMakerNetwork, SupportedNetworks
from .signer import LocalSigner, Signer
from .signer_middleware import SigningTransport, flashbots_signature, signing_layer

__all__ = [
    "Bundle",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "EventStreamDispatcher",
    "EventTransaction",
    "EventTransactionLog",
    "FunctionSelector",
    "HintPreference",
    "InclusionParams",
    "LocalSigner",
    "MatchMakerNetwork",
    "MatchmakerClient",
    "MatchmakerError",
    "PendingBundle",
    "PendingTransaction",
    "PendingTxOrBundle",
    "PrivacyParams",
    "ProtocolVersion",
    "RawEvent",
    "Refund",
    "RefundConfig",
    "RelayError",
    "SendBundleResponse",
    "SignedTxBody",
    "Signer",
    "SigningError",
    "SigningTransport",
    "StreamingEventType",
    "SupportedNetworks",
    "TransactionOptions",
    "TransportError",
    "TxHashBody",
    "ValidityParams",
    "flashbots_signature",
    "signing_layer",
]
__version__ = "0.1.0"
