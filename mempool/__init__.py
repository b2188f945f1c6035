from .mempool_manager import TransactionPool
