from dataclasses import asdict

from fastapi import APIRouter, Depends

from visa_coach.analytics.performance_engine import PerformanceEngine
from visa_coach.runtime import Runtime, get_runtime

router = APIRouter(prefix="/candidates", tags=["analytics"])

performance_engine = PerformanceEngine()


@router.get("/{candidate_id}/analytics")
def get_candidate_analytics(candidate_id: str, runtime: Runtime = Depends(get_runtime)):
    history = runtime.history.entries(candidate_id)
    dashboard = performance_engine.build(history)
    payload = asdict(dashboard)
    payload["candidate_id"] = candidate_id
    return payload
