"""
Ledger Factory

Builds a LedgerStore with its collaborators wired together and loads it.
The UI layer calls this once at startup and holds on to the result; there
is no module-level ledger instance.
"""

from pathlib import Path
from typing import Optional

from expense_ledger.audit import AuditLogger, configure_logging
from expense_ledger.config import get_settings
from expense_ledger.ledger.store import Clock, LedgerStore
from expense_ledger.services.storage import (
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    LedgerPersistence,
)
from expense_ledger.validation import LedgerValidator


async def create_ledger(
    data_dir: Optional[Path] = None,
    store: Optional[KeyValueStoreInterface] = None,
    clock: Optional[Clock] = None,
    configure_logs: bool = True,
) -> LedgerStore:
    """
    Create and load a ledger.

    Args:
        data_dir: Directory for the JSON-file store. Ignored when `store`
                  is given. Defaults to the configured data directory.
        store: Key-value backend to use instead of the JSON-file store
        clock: Source of "now"; defaults to the local wall clock
        configure_logs: Configure structlog from settings first

    Returns:
        A loaded LedgerStore
    """
    settings = get_settings()
    if configure_logs:
        configure_logging(settings.logging)

    audit_logger = AuditLogger()
    backend = store or JsonFileKeyValueStore(
        data_dir=data_dir,
        write_attempts=settings.storage.write_attempts,
    )
    persistence = LedgerPersistence(
        backend,
        key_prefix=settings.storage.key_prefix,
        audit_logger=audit_logger,
    )
    ledger = LedgerStore(
        persistence,
        validator=LedgerValidator(settings.ledger),
        audit_logger=audit_logger,
        clock=clock,
    )
    await ledger.load()
    return ledger
