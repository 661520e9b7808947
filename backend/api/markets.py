"""Market detail API endpoints."""

from fastapi import APIRouter, Request, HTTPException

router = APIRouter()


@router.get("/markets/{market_id}")
async def get_market(request: Request, market_id: str):
    svc = request.app.state.market_service
    market = await svc.get_market_details(market_id)
    if not market:
        raise HTTPException(404, "Market not found")
    return market
