"""In-memory test doubles shared by unit and integration tests"""

from decimal import Decimal
from typing import List

from forma_analytics.domain.models import (
    PlannedTransaction,
    SpendingTransaction,
    TrendTransaction,
    UserSettings,
)


class FakeTransactionSource:
    """In-memory stand-in for the transaction source API"""

    def __init__(
        self,
        historical: List[SpendingTransaction] | None = None,
        planned: List[PlannedTransaction] | None = None,
        categorized: List[TrendTransaction] | None = None,
        user_settings: UserSettings | None = None,
        balance: Decimal = Decimal("5000"),
    ):
        self.historical = historical or []
        self.planned = planned or []
        self.categorized = categorized or []
        self.user_settings = user_settings or UserSettings(minimum_safe_balance=Decimal("1000"), safety_buffer_days=7)
        self.balance = balance
        self.calls = 0
        self.error: Exception | None = None

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    async def get_historical_transactions(self, workspace_id, account_id, since):
        self.calls += 1
        self._maybe_fail()
        return list(self.historical)

    async def get_planned_transactions(self, workspace_id, account_id, start_date, end_date):
        self._maybe_fail()
        return [p for p in self.planned if start_date <= p.planned_date <= end_date]

    async def get_categorized_transactions(self, workspace_id, start_date, end_date):
        self._maybe_fail()
        return [t for t in self.categorized if start_date <= t.transaction_date <= end_date]

    async def get_user_settings(self, workspace_id):
        return self.user_settings

    async def get_current_balance(self, workspace_id, account_id):
        return self.balance
