"""Collector lifecycle control API endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.post("/collector/start")
async def start_collector(request: Request):
    scheduler = request.app.state.scheduler
    changed = await scheduler.start()
    return {"success": True, "changed": changed, "state": scheduler.state.value}


@router.post("/collector/stop")
async def stop_collector(request: Request):
    scheduler = request.app.state.scheduler
    changed = await scheduler.stop()
    return {"success": True, "changed": changed, "state": scheduler.state.value}


@router.post("/collector/run")
async def run_collector(request: Request):
    scheduler = request.app.state.scheduler
    return await scheduler.run_now()


@router.get("/collector/status")
async def get_collector_status(request: Request):
    scheduler = request.app.state.scheduler
    return scheduler.get_status()
