"""
Custom exception classes for the block tree
"""
from enum import Enum


class RejectReason(str, Enum):
    """Why a candidate block was not added to the tree"""
    GENESIS = "genesis"
    DUPLICATE = "duplicate"
    UNKNOWN_PARENT = "unknown_parent"
    TOO_OLD = "too_old"
    INVALID_TRANSACTIONS = "invalid_transactions"


class BlockchainError(Exception):
    """Base exception for blockchain operations"""
    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or "BLOCKCHAIN_ERROR"

class ValidationError(BlockchainError):
    """Transaction or block validation failed"""
    def __init__(self, message: str, code: str = None):
        super().__init__(message, code or "VALIDATION_ERROR")

class BlockRejectedError(ValidationError):
    """Candidate block refused by the block tree"""
    def __init__(self, reason: RejectReason, block_hash: str, detail: str = ""):
        message = f"Block {block_hash} rejected: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, "BLOCK_REJECTED")
        self.reason = reason
        self.block_hash = block_hash
        self.detail = detail

class ConfigurationError(BlockchainError):
    """Invalid configuration value"""
    def __init__(self, message: str):
        super().__init__(message, "CONFIG_ERROR")
