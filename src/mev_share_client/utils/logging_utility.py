import logging
import threading

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_setup_lock = threading.Lock()
_configured = False


def setup_logging(level: str = "INFO") -> bool:
    """Configure process-wide logging once.

    Later calls do nothing, so it is safe to call from every entry point.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        True if this call configured logging, False if it was already done
    """
    global _configured

    with _setup_lock:
        if _configured:
            return False

        log_level: int = getattr(logging, level.upper(), logging.INFO)
        logging.basicConfig(level=log_level, format=LOG_FORMAT)
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))
        _configured = True
        return True
