"""GET /v1/forecast/{workspace_id}/{account_id} - daily balance forecast endpoint"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from forma_analytics.api.dependencies import get_forecast_service, get_request_id
from forma_analytics.api.v1.schemas import (
    CacheInvalidationResponse,
    DailyForecastSchema,
    ForecastMetadata,
    ForecastResponse,
    PaymentRiskSchema,
    UserSettingsSchema,
)
from forma_analytics.domain.exceptions import (
    ForecastCalculationError,
    InvalidTransactionDataError,
    TransactionSourceError,
)
from forma_analytics.infrastructure.observability.logging import logger
from forma_analytics.services.forecast_service import ForecastOptions, ForecastService
from forma_analytics.utils.date_utils import month_bounds

router = APIRouter()

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


@router.get("/forecast/{workspace_id}/{account_id}", response_model=ForecastResponse)
async def get_forecast(
    workspace_id: str,
    account_id: str,
    request: Request,
    month: str = Query(..., pattern=MONTH_PATTERN, description="Month to forecast (YYYY-MM)"),
    minimum_safe_balance: Optional[Decimal] = Query(None, description="Override stored minimum safe balance"),
    safety_buffer_days: Optional[int] = Query(None, ge=1, le=30),
    service: ForecastService = Depends(get_forecast_service),
):
    """
    Forecast daily balances for every day of a calendar month.

    Returns:
        Day-by-day projections, payment risks and the baseline they came from.
        metadata.should_display is false while there is not enough history yet.
    """
    request_id = get_request_id(request)
    year, month_number = (int(part) for part in month.split("-"))
    start_date, end_date = month_bounds(year, month_number)

    options = ForecastOptions(
        start_date=start_date,
        end_date=end_date,
        minimum_safe_balance=minimum_safe_balance,
        safety_buffer_days=safety_buffer_days,
    )

    try:
        complete = await service.get_forecast(workspace_id, account_id, options)

    except TransactionSourceError as e:
        logger.error("Transaction source error", e, request_id=request_id)
        raise HTTPException(status_code=503, detail="Transaction source unavailable")

    except InvalidTransactionDataError as e:
        logger.warn(f"Invalid transaction data: {e}", request_id=request_id)
        raise HTTPException(status_code=422, detail=str(e))

    except ForecastCalculationError as e:
        logger.error("Forecast calculation error", e, request_id=request_id)
        raise HTTPException(status_code=500, detail="Failed to calculate forecast")

    return ForecastResponse(
        daily_forecasts=[DailyForecastSchema.model_validate(f) for f in complete.forecast.forecasts],
        payment_risks=[PaymentRiskSchema.model_validate(r) for r in complete.payment_risks],
        average_daily_spending=complete.forecast.average_daily_spending,
        spending_confidence=complete.forecast.spending_confidence,
        current_balance=complete.current_balance,
        user_settings=UserSettingsSchema.model_validate(complete.user_settings),
        metadata=ForecastMetadata(
            calculated_at=datetime.now(timezone.utc),
            should_display=complete.forecast.should_display,
        ),
    )


@router.delete("/forecast/{workspace_id}/{account_id}/cache", response_model=CacheInvalidationResponse)
def invalidate_forecast_cache(
    workspace_id: str,
    account_id: str,
    service: ForecastService = Depends(get_forecast_service),
):
    """Drop cached forecasts after the account's transactions change"""
    cleared = service.invalidate_cache(workspace_id, account_id)
    return CacheInvalidationResponse(success=True, entries_cleared=cleared)
