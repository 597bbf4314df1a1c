from __future__ import annotations

from fastapi import APIRouter

from app.studio.adapter import create_strategy_analysis
from app.studio.schemas import StrategyAnalysisRequest

router = APIRouter(prefix="/v1/strategy", tags=["strategy"])


@router.post("/analyses")
async def strategy_analyses(payload: StrategyAnalysisRequest) -> dict:
    return await create_strategy_analysis(payload)
