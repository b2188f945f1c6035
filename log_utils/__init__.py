from .structured_logger import ContextualLogger, StructuredFormatter, get_logger, setup_logging
