"""Movement feed and export API endpoints."""

import io
from datetime import datetime, timezone

import pandas as pd
from fastapi import APIRouter, Request, Query
from fastapi.responses import StreamingResponse

from models.market import Significance
from services.market_service import movements_to_frame

router = APIRouter()


@router.get("/movements")
async def list_movements(
    request: Request,
    limit: int = Query(20, ge=1, le=500),
    significance: Significance | None = None,
):
    svc = request.app.state.market_service
    movements = await svc.get_recent_movements(limit=limit, significance=significance)
    return {"movements": movements, "total": len(movements)}


@router.get("/movements/export")
async def export_movements(
    request: Request,
    limit: int = Query(500, ge=1, le=10000),
    significance: Significance | None = None,
):
    """Export recent movements as an Excel file."""
    svc = request.app.state.market_service
    movements = await svc.get_recent_movements(limit=limit, significance=significance)
    df = movements_to_frame(movements)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Movements")
    output.seek(0)

    now_str = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    filename = f"movements_{now_str}.xlsx"

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
