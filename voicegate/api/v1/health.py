from fastapi import APIRouter
from fastapi.responses import JSONResponse

from voicegate.core.monitoring import collector
from voicegate.core.registry import AdapterRegistry
from voicegate.core.response import success

router = APIRouter()


@router.get("/health")
async def health() -> JSONResponse:
    return success(
        data={
            "status": "ok",
            "adapters": sorted(item.value for item in AdapterRegistry.list_adapters()),
            "metrics": collector.snapshot(),
        }
    )
