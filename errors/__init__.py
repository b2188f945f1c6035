from .exceptions import (
    BlockchainError,
    BlockRejectedError,
    ConfigurationError,
    RejectReason,
    ValidationError,
)
