"""
Log rendering for bridgekeeper.

Modules log through stdlib ``logging``; structlog only formats the records.
Confirmation watches bind ``tx_hash`` and ``chain_id`` as contextvars, and
``transfer_context`` puts them at the head of every line emitted inside a
watch so one transfer can be followed across tracker, RPC client and
release handler output.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import structlog

from .config import settings
from .core.bridge.message import normalize_hash

TRANSFER_KEYS = ("tx_hash", "chain_id")


def transfer_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Move bound transfer keys to the front, with the hash in canonical form."""
    bound = {key: event_dict.pop(key) for key in TRANSFER_KEYS if key in event_dict}
    if not bound:
        return event_dict
    if isinstance(bound.get("tx_hash"), str):
        bound["tx_hash"] = normalize_hash(bound["tx_hash"])
    return {**bound, **event_dict}


def build_formatter(json_logs: bool = True) -> structlog.stdlib.ProcessorFormatter:
    pre_chain: List[Any] = [
        structlog.contextvars.merge_contextvars,
        transfer_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(sort_keys=False)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_logging(log_level: Optional[str] = None) -> None:
    """Send all records to stdout. JSON lines, or console output at DEBUG."""
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(json_logs=level != logging.DEBUG))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
