from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.api.deps import get_current_identity, get_db
from voicegate.core.response import success
from voicegate.core.security import Identity
from voicegate.schemas.redeem import RedeemRequest, RedeemResponse
from voicegate.services.redemption_service import redeem_code, success_message

router = APIRouter(tags=["redeem"])


@router.post("/redeem")
async def redeem(
    payload: RedeemRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> JSONResponse:
    """兑换授权码，增加对应额度池的分钟数"""
    result = await redeem_code(db, identity.user_id, payload.code)
    response = RedeemResponse(
        minutes_added=result.minutes_added,
        total_minutes=result.new_balance,
        tier=result.tier.value,
        message=success_message(result),
    )
    return success(data=jsonable_encoder(response))
