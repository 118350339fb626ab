"""GET /v1/trends/{workspace_id} - category spending trends"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from forma_analytics.api.dependencies import get_forecast_service, get_request_id
from forma_analytics.api.v1.schemas import SpendingTrendsResponse
from forma_analytics.domain.exceptions import InvalidTransactionDataError, TransactionSourceError
from forma_analytics.infrastructure.observability.logging import logger
from forma_analytics.services.forecast_service import ForecastService

router = APIRouter()


@router.get("/trends/{workspace_id}", response_model=SpendingTrendsResponse)
async def get_spending_trends(
    workspace_id: str,
    request: Request,
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    service: ForecastService = Depends(get_forecast_service),
):
    """
    Month-over-month spending by category.

    Returns:
        Categories sorted by current-month spend with top and unusual subsets
    """
    request_id = get_request_id(request)

    try:
        result = await service.get_spending_trends(workspace_id, year, month)
    except TransactionSourceError as e:
        logger.error("Transaction source error", e, request_id=request_id)
        raise HTTPException(status_code=503, detail="Transaction source unavailable")
    except InvalidTransactionDataError as e:
        logger.warn(f"Invalid transaction data: {e}", request_id=request_id)
        raise HTTPException(status_code=422, detail=str(e))

    return SpendingTrendsResponse.model_validate(result)
