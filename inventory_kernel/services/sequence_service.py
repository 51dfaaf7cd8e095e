"""
SequenceService -- gap-free document numbers via locked counter rows.

Responsibility:
    Issues zero-padded, strictly increasing document numbers per prefix
    (``PO000001``, ``PO000002``, ...).  One counter row per prefix, locked
    with ``SELECT ... FOR UPDATE`` so two concurrent callers can never
    receive the same number.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by DocumentService.create_draft() and by anything else that
    needs a formatted number.

Invariants enforced:
    - Uniqueness: the locked counter row is the sole source of truth.
      MAX(document_number) + 1 is never used.
    - Gap-free: the increment rides on the caller's transaction; a rollback
      returns the number, so no number is burned by a failed creation.

Failure modes:
    - IntegrityError: concurrent first use of a prefix (handled via savepoint
      rollback and retry).
    - Any database error propagates and fails the enclosing document
      creation; there is never a document without a number.
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.exceptions import FieldValidationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.sequence")

MAX_PREFIX_LENGTH = 16


class SequenceCounter(Base):
    """
    One row per prefix.  ``current_value`` is the last number issued;
    ``start_value - 1`` before first use.
    """

    __tablename__ = "document_sequences"

    prefix: Mapped[str] = mapped_column(
        String(MAX_PREFIX_LENGTH),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Contract:
        ``next_number(prefix)`` consumes and returns the next formatted
        number; ``peek_number(prefix)`` returns it without consuming.

    Guarantees:
        - Concurrency safety through the locked counter row.
        - Gap-free under rollback.

    Non-goals:
        - Does NOT call ``session.commit()``; caller controls boundaries.

    Usage:
        numbers = SequenceService(session, start_value=1, padding=6)
        numbers.next_number("PO")   # "PO000001"
        numbers.peek_number("PO")   # "PO000002"
    """

    # Counter behind MovementEntry.seq
    MOVEMENT_ENTRY = "movement_entry"

    def __init__(self, session: Session, start_value: int = 1, padding: int = 6):
        if start_value < 1:
            start_value = 1
        self._session = session
        self._start_value = start_value
        self._padding = padding

    @staticmethod
    def normalize_prefix(prefix: str) -> str:
        prefix = (prefix or "").strip()
        if not prefix:
            raise FieldValidationError.required("Prefix")
        if len(prefix) > MAX_PREFIX_LENGTH:
            raise FieldValidationError.too_long("Prefix", MAX_PREFIX_LENGTH)
        return prefix

    def format_number(self, prefix: str, value: int) -> str:
        return f"{prefix}{value:0{self._padding}d}"

    def _lock_counter(self, prefix: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.prefix == prefix)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, prefix: str) -> int:
        """
        Lock the counter for ``prefix``, increment it and return the new value.

        Preconditions:
            - The caller is within an active database transaction.
        Postconditions:
            - Returns a value >= start_value, strictly greater than any value
              previously committed for this prefix.
            - The counter row stays locked until the transaction completes.
        """
        prefix = self.normalize_prefix(prefix)
        counter = self._lock_counter(prefix)

        if counter is None:
            # First use. Another caller may be creating the same row; a
            # savepoint keeps the rest of the caller's transaction intact.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(
                    prefix=prefix, current_value=self._start_value
                )
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_issued",
                    extra={"prefix": prefix, "value": self._start_value},
                )
                return self._start_value
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"prefix": prefix},
                )
                savepoint.rollback()
                counter = self._lock_counter(prefix)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_issued",
            extra={"prefix": prefix, "value": counter.current_value},
        )
        return counter.current_value

    def next_number(self, prefix: str) -> str:
        prefix = self.normalize_prefix(prefix)
        return self.format_number(prefix, self.next_value(prefix))

    def current_value(self, prefix: str) -> int | None:
        """Last issued value, or None if the prefix was never used."""
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.prefix == self.normalize_prefix(prefix))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def peek_value(self, prefix: str) -> int:
        current = self.current_value(prefix)
        return self._start_value if current is None else current + 1

    def peek_number(self, prefix: str) -> str:
        """Formatted next number, without consuming it."""
        prefix = self.normalize_prefix(prefix)
        return self.format_number(prefix, self.peek_value(prefix))

    def reset(self, prefix: str, value: int = 0) -> None:
        """
        Set the last-issued value for a prefix.

        WARNING: tests and migration scripts only.
        """
        prefix = self.normalize_prefix(prefix)
        counter = self._lock_counter(prefix)
        if counter is None:
            self._session.add(SequenceCounter(prefix=prefix, current_value=value))
        else:
            counter.current_value = value
        self._session.flush()
