"""Transaction source HTTP client for fetching history, planned rows and settings"""

import httpx
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from forma_analytics.config import settings
from forma_analytics.domain.exceptions import InvalidTransactionDataError, TransactionSourceError
from forma_analytics.domain.models import (
    PlannedTransaction,
    SpendingTransaction,
    TransactionType,
    TrendTransaction,
    UserSettings,
)
from forma_analytics.infrastructure.observability.errors import ErrorCategory, error_tracker
from forma_analytics.infrastructure.observability.logging import logger
from forma_analytics.infrastructure.observability.metrics import source_fetch_failures_counter

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"


def parse_amount(value: Any) -> Decimal:
    """Non-negative decimal amount"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidTransactionDataError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise InvalidTransactionDataError(f"Amount must be a non-negative number: {value!r}")
    return amount


def parse_balance(value: Any) -> Decimal:
    """Signed decimal; balances and minimums may be negative (overdraft)"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidTransactionDataError(f"Invalid balance: {value!r}") from e
    if not amount.is_finite():
        raise InvalidTransactionDataError(f"Balance must be a finite number: {value!r}")
    return amount


def parse_user_settings(data: Any) -> UserSettings:
    """Stored thresholds; missing fields fall back to configured defaults"""
    if not isinstance(data, dict):
        raise InvalidTransactionDataError(f"Invalid user settings: {data!r}")

    minimum = data.get("minimum_safe_balance")
    buffer_days = data.get("safety_buffer_days")

    try:
        safety_buffer_days = int(buffer_days) if buffer_days else settings.default_safety_buffer_days
    except (TypeError, ValueError) as e:
        raise InvalidTransactionDataError(f"Invalid safety_buffer_days: {buffer_days!r}") from e

    return UserSettings(
        minimum_safe_balance=(
            parse_balance(minimum) if minimum is not None else settings.default_minimum_safe_balance
        ),
        safety_buffer_days=safety_buffer_days,
    )


def parse_type(value: Any) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError as e:
        raise InvalidTransactionDataError(f"Transaction type must be income or expense: {value!r}") from e


def parse_date(value: Any) -> date:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise InvalidTransactionDataError(f"Invalid date: {value!r}") from e


def parse_spending_transaction(row: Dict[str, Any]) -> SpendingTransaction:
    return SpendingTransaction(
        amount=parse_amount(row["amount"]),
        transaction_date=parse_date(row["transaction_date"]),
        type=parse_type(row["type"]),
    )


def parse_planned_transaction(row: Dict[str, Any]) -> PlannedTransaction:
    # Planned rows come from the same table, keyed by their expected date
    return PlannedTransaction(
        amount=parse_amount(row["amount"]),
        planned_date=parse_date(row.get("planned_date") or row["transaction_date"]),
        type=parse_type(row["type"]),
        description=row.get("description") or "Planned transaction",
    )


def parse_trend_transaction(row: Dict[str, Any]) -> TrendTransaction:
    category_id = row.get("category_id")
    if category_id:
        category_name = row.get("category_name") or UNCATEGORIZED_NAME
    else:
        category_id, category_name = UNCATEGORIZED_ID, UNCATEGORIZED_NAME

    return TrendTransaction(
        amount=parse_amount(row["amount"]),
        transaction_date=parse_date(row["transaction_date"]),
        type=parse_type(row["type"]),
        category_id=str(category_id),
        category_name=category_name,
    )


class TransactionClient:
    """Client for the external transaction source API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.transaction_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _get(self, operation: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document from the source.

        Raises:
            TransactionSourceError: On timeout, HTTP errors, or a non-JSON body
        """
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.get(path, params=params)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                error = TransactionSourceError(f"Transaction source timeout after {self.timeout}s")
                self._record_failure(operation, error, path)
                raise error from e
            except httpx.HTTPStatusError as e:
                error = TransactionSourceError(f"Transaction source error: {e.response.status_code}")
                self._record_failure(operation, error, path)
                raise error from e
            except (httpx.RequestError, ValueError) as e:
                error = TransactionSourceError(f"Transaction source unavailable: {e}")
                self._record_failure(operation, error, path)
                raise error from e

    def _record_failure(self, operation: str, error: Exception, path: str) -> None:
        source_fetch_failures_counter.inc()
        error_tracker.track_error(ErrorCategory.DATA_FETCH, operation, error, path=path)

    def _parse_rows(self, operation: str, rows: List[Dict[str, Any]], parser) -> List[Any]:
        try:
            return [parser(row) for row in rows]
        except (KeyError, TypeError) as e:
            error = InvalidTransactionDataError(f"Invalid transaction data from source: {e}")
            error_tracker.track_error(ErrorCategory.VALIDATION, operation, error)
            raise error from e
        except InvalidTransactionDataError as e:
            error_tracker.track_error(ErrorCategory.VALIDATION, operation, e)
            raise

    async def get_historical_transactions(
        self, workspace_id: str, account_id: str, since: date
    ) -> List[SpendingTransaction]:
        """Completed transactions on or after `since`"""
        data = await self._get(
            "fetch_historical_transactions",
            f"/workspaces/{workspace_id}/accounts/{account_id}/transactions",
            params={"status": "completed", "since": since.isoformat()},
        )
        transactions = self._parse_rows(
            "fetch_historical_transactions", data.get("transactions", []), parse_spending_transaction
        )
        logger.debug(
            "Historical transactions fetched",
            workspace_id=workspace_id,
            account_id=account_id,
            count=len(transactions),
        )
        return transactions

    async def get_planned_transactions(
        self, workspace_id: str, account_id: str, start_date: date, end_date: date
    ) -> List[PlannedTransaction]:
        """Planned transactions dated within start_date..end_date"""
        data = await self._get(
            "fetch_planned_transactions",
            f"/workspaces/{workspace_id}/accounts/{account_id}/transactions",
            params={"status": "planned", "start": start_date.isoformat(), "end": end_date.isoformat()},
        )
        transactions = self._parse_rows(
            "fetch_planned_transactions", data.get("transactions", []), parse_planned_transaction
        )
        logger.debug(
            "Planned transactions fetched",
            workspace_id=workspace_id,
            account_id=account_id,
            count=len(transactions),
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
        return transactions

    async def get_categorized_transactions(
        self, workspace_id: str, start_date: date, end_date: date
    ) -> List[TrendTransaction]:
        """Category-tagged transactions across all accounts of a workspace"""
        data = await self._get(
            "fetch_categorized_transactions",
            f"/workspaces/{workspace_id}/transactions",
            params={"start": start_date.isoformat(), "end": end_date.isoformat()},
        )
        return self._parse_rows(
            "fetch_categorized_transactions", data.get("transactions", []), parse_trend_transaction
        )

    async def get_user_settings(self, workspace_id: str) -> UserSettings:
        """User thresholds, falling back to configured defaults when none are stored"""
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.get(f"/workspaces/{workspace_id}/settings")
            except httpx.HTTPError as e:
                error = TransactionSourceError(f"Transaction source unavailable: {e}")
                self._record_failure("fetch_user_settings", error, "settings")
                raise error from e

        if response.status_code == 404:
            logger.debug("User settings not found, using defaults", workspace_id=workspace_id)
            return UserSettings(
                minimum_safe_balance=settings.default_minimum_safe_balance,
                safety_buffer_days=settings.default_safety_buffer_days,
            )

        if response.is_error:
            error = TransactionSourceError(f"Transaction source error: {response.status_code}")
            self._record_failure("fetch_user_settings", error, "settings")
            raise error

        try:
            data = response.json()
        except ValueError as e:
            error = TransactionSourceError(f"Transaction source unavailable: {e}")
            self._record_failure("fetch_user_settings", error, "settings")
            raise error from e

        try:
            return parse_user_settings(data)
        except InvalidTransactionDataError as e:
            error_tracker.track_error(ErrorCategory.VALIDATION, "fetch_user_settings", e)
            raise

    async def get_current_balance(self, workspace_id: str, account_id: str) -> Decimal:
        data = await self._get(
            "fetch_current_balance",
            f"/workspaces/{workspace_id}/accounts/{account_id}/balance",
        )
        try:
            balance = data.get("actual_balance")
            return parse_balance(balance) if balance is not None else Decimal(0)
        except InvalidTransactionDataError as e:
            error_tracker.track_error(ErrorCategory.VALIDATION, "fetch_current_balance", e)
            raise
