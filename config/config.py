import os
from decimal import Decimal

# Blocks whose height falls this far behind the best tip can never take the
# lead again and are dropped.
RETENTION_WINDOW = int(os.environ.get("RETENTION_WINDOW", "10"))
COINBASE_REWARD = Decimal(os.environ.get("COINBASE_REWARD", "25"))
MAX_BLOCK_TRANSACTIONS = int(os.environ.get("MAX_BLOCK_TRANSACTIONS", "1000"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE") or None
STRUCTURED_LOGS = os.environ.get("STRUCTURED_LOGS", "true").lower() in ("1", "true", "yes")
