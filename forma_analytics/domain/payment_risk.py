"""Payment risk assessment for upcoming planned expenses"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from forma_analytics.domain.models import (
    DailyForecast,
    PaymentRisk,
    PlannedTransaction,
    RiskLevel,
    TransactionType,
)


def assess_payment_risks(
    planned_transactions: Iterable[PlannedTransaction],
    daily_forecasts: Iterable[DailyForecast],
    average_daily_spending: Decimal,
    safety_buffer_days: int = 7,
    today: Optional[date] = None,
) -> List[PaymentRisk]:
    """
    Assess whether each upcoming planned expense can be afforded.

    The balance available for a payment is the forecast's starting balance
    on the payment date. A payment is:
    - danger:  when it would take the balance below zero
    - warning: when less than safety_buffer_days of spending would remain
    - safe:    otherwise

    Payments without a matching forecast day are reported as danger.

    Returns:
        Risks sorted by urgency (soonest first)
    """
    today = today or date.today()
    forecasts_by_date = {f.date: f for f in daily_forecasts}
    safety_buffer = Decimal(average_daily_spending) * safety_buffer_days

    risks: List[PaymentRisk] = []
    for planned in planned_transactions:
        if planned.type != TransactionType.EXPENSE:
            continue

        amount = Decimal(planned.amount)
        days_until = (planned.planned_date - today).days
        forecast = forecasts_by_date.get(planned.planned_date)

        if forecast is None:
            risks.append(
                PaymentRisk(
                    transaction=planned,
                    days_until=days_until,
                    projected_balance_at_date=Decimal(0),
                    balance_after_payment=-amount,
                    risk_level=RiskLevel.DANGER,
                    recommendation="Unable to calculate - insufficient forecast data",
                    can_afford=False,
                )
            )
            continue

        projected_balance = forecast.breakdown.starting_balance
        balance_after = projected_balance - amount
        due = planned.planned_date.strftime("%b %d")

        if balance_after < 0:
            risk_level = RiskLevel.DANGER
            recommendation = f"Insufficient funds. Need {abs(balance_after):.2f} more by {due}."
            can_afford = False
        elif balance_after < safety_buffer:
            risk_level = RiskLevel.WARNING
            recommendation = (
                f"Balance will be tight. Only {balance_after:.2f} remaining after payment "
                f"(less than {safety_buffer_days}-day buffer)."
            )
            can_afford = True
        else:
            risk_level = RiskLevel.SAFE
            recommendation = f"Sufficient funds available. {balance_after:.2f} remaining after payment."
            can_afford = True

        risks.append(
            PaymentRisk(
                transaction=planned,
                days_until=days_until,
                projected_balance_at_date=projected_balance,
                balance_after_payment=balance_after,
                risk_level=risk_level,
                recommendation=recommendation,
                can_afford=can_afford,
            )
        )

    return sorted(risks, key=lambda r: r.days_until)
