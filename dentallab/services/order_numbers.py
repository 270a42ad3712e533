"""
Order number allocation

Order numbers look like ``PTF-25-0007``: a category prefix, the two-digit
year and a zero-padded per-(prefix, year) sequence. The sequence lives in
the ``sequences`` table and is bumped with a single upsert statement so
concurrent order creation never reads the same value twice.
"""

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from dentallab.constants import JOB_TYPE_PREFIXES, DEFAULT_ORDER_PREFIX, get_order_prefix
from dentallab.models.order import Order
from dentallab.models.sequence import Sequence
from dentallab.utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 4

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def counter_id_for(category: str, now: Optional[datetime] = None) -> str:
    """Counter key for a job category in the given (or current) year"""
    year = (now or datetime.utcnow()).strftime("%y")
    return f"{get_order_prefix(category)}-{year}"


def format_order_number(counter_id: str, seq: int) -> str:
    return f"{counter_id}-{seq:0{SEQUENCE_WIDTH}d}"


def parse_sequence(order_number: str) -> Optional[int]:
    """Trailing sequence of an order number, or None if it does not parse"""
    if not order_number:
        return None
    try:
        return int(order_number.rsplit("-", 1)[-1])
    except ValueError:
        return None


def next_sequence(db: Session, counter_id: str) -> int:
    """Atomically increment the counter and return the new value"""
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise DatabaseError(f"Atomic order counters are not supported on '{dialect}'")

    table = Sequence.__table__
    stmt = (
        insert(table)
        .values(id=counter_id, seq=1)
        .on_conflict_do_update(
            index_elements=[table.c.id],
            set_={"seq": table.c.seq + 1},
        )
        .returning(table.c.seq)
    )
    return db.execute(stmt).scalar_one()


def allocate_order_number(db: Session, category: str, now: Optional[datetime] = None) -> str:
    """Mint the next order number for a job category

    Runs inside the caller's transaction; the caller commits together with
    the order row.
    """
    counter_id = counter_id_for(category, now)
    seq = next_sequence(db, counter_id)
    order_number = format_order_number(counter_id, seq)
    logger.debug(f"Allocated order number {order_number}")
    return order_number


def initialize_counters(db: Session, now: Optional[datetime] = None) -> dict[str, int]:
    """Make sure this year's counters are never behind the orders already stored

    Scans existing order numbers per prefix and raises each counter to the
    highest sequence found. Existing counters are never lowered.
    """
    logger.info("Initializing order number counters...")
    prefixes = sorted(set(JOB_TYPE_PREFIXES.values()) | {DEFAULT_ORDER_PREFIX})
    year = (now or datetime.utcnow()).strftime("%y")
    initialized = {}

    for prefix in prefixes:
        counter_id = f"{prefix}-{year}"
        rows = (
            db.query(Order.order_number)
            .filter(Order.order_number.like(f"{counter_id}-%"))
            .all()
        )
        max_seq = max(
            (seq for seq in (parse_sequence(number) for (number,) in rows) if seq is not None),
            default=0,
        )

        counter = db.get(Sequence, counter_id)
        if counter is None:
            counter = Sequence(id=counter_id, seq=max_seq)
            db.add(counter)
        elif counter.seq < max_seq:
            logger.warning(f"Counter '{counter_id}' was behind stored orders ({counter.seq} < {max_seq})")
            counter.seq = max_seq

        initialized[counter_id] = counter.seq
        logger.info(f"Counter '{counter_id}' initialized to sequence {counter.seq}.")

    db.commit()
    logger.info("Counter initialization complete.")
    return initialized
