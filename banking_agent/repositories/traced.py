"""
Traced repositories - one CLIENT span per repository call.

Wraps any AccountRepository / TransactionRepository. Span names are
``<RepositoryClass>.<method>``; lookups record the key they searched by,
list results record their size and single-row lookups whether a row was
found. A failing call is recorded on its span and re-raised unchanged.

Example:
    >>> accounts = TracedAccountRepository(InMemoryAccountRepository(), tracer)
    >>> await accounts.find_by_account_number("ACC001")  # span InMemoryAccountRepository.find_by_account_number
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

from banking_agent.models.domain import Account, Transaction
from banking_agent.observability.semconv import DbAttributes
from banking_agent.repositories.base import AccountRepository, TransactionRepository

T = TypeVar("T")

DB_SYSTEM = "memory"

# method name -> db.operation.type
_OPERATION_TYPES = {
    "save": "INSERT_OR_UPDATE",
    "find_all": "SELECT_ALL",
}


class _RepositoryTracer:
    def __init__(self, repository: Any, tracer: Tracer) -> None:
        self._class_name = type(repository).__name__
        self._tracer = tracer

    async def call(
        self,
        method: str,
        operation: Callable[[], Awaitable[T]],
        query_key: Optional[str] = None,
        query_value: Optional[str] = None,
    ) -> T:
        attributes: dict[str, Any] = {
            DbAttributes.SYSTEM: DB_SYSTEM,
            DbAttributes.OPERATION: method,
            DbAttributes.REPOSITORY_CLASS: self._class_name,
            DbAttributes.REPOSITORY_METHOD: method,
        }
        if query_key is not None:
            attributes[DbAttributes.QUERY_KEY] = query_key
            attributes[DbAttributes.QUERY_VALUE] = query_value or ""
        if method in _OPERATION_TYPES:
            attributes[DbAttributes.OPERATION_TYPE] = _OPERATION_TYPES[method]

        with self._tracer.start_as_current_span(
            f"{self._class_name}.{method}",
            kind=SpanKind.CLIENT,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            try:
                result = await operation()
            except Exception as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            if isinstance(result, list):
                span.set_attribute(DbAttributes.RESULT_COUNT, len(result))
            elif query_key is not None:
                span.set_attribute(DbAttributes.RESULT_PRESENT, result is not None)
            span.set_status(Status(StatusCode.OK))
            return result


class TracedAccountRepository(AccountRepository):
    def __init__(self, repository: AccountRepository, tracer: Tracer) -> None:
        self._repository = repository
        self._trace = _RepositoryTracer(repository, tracer)

    async def find_by_account_number(self, account_number: str) -> Optional[Account]:
        return await self._trace.call(
            "find_by_account_number",
            lambda: self._repository.find_by_account_number(account_number),
            query_key="account_number",
            query_value=account_number,
        )

    async def find_all(self) -> list[Account]:
        return await self._trace.call("find_all", self._repository.find_all)

    async def save(self, account: Account) -> Account:
        return await self._trace.call("save", lambda: self._repository.save(account))


class TracedTransactionRepository(TransactionRepository):
    def __init__(self, repository: TransactionRepository, tracer: Tracer) -> None:
        self._repository = repository
        self._trace = _RepositoryTracer(repository, tracer)

    async def get_history(self, account_number: str) -> list[Transaction]:
        return await self._trace.call(
            "get_history",
            lambda: self._repository.get_history(account_number),
            query_key="account_number",
            query_value=account_number,
        )

    async def save(self, transaction: Transaction) -> Transaction:
        return await self._trace.call("save", lambda: self._repository.save(transaction))


__all__ = ["TracedAccountRepository", "TracedTransactionRepository"]
