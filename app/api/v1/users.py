from fastapi import APIRouter
from fastapi import Depends

from app.api.deps import get_analysis_service
from app.models.payload import PreferencesPayload
from app.models.response import Response
from app.services.analysis_service import AnalysisService
from app.utils.security import get_current_user_id

router = APIRouter(tags=["Users"])


@router.put("/me/preferences", response_model=Response, summary="Replace the caller's dietary preferences")
async def update_preferences(
    payload: PreferencesPayload,
    user_id: str = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    user = await service.update_preferences(user_id, payload)
    return Response(
        success=True,
        message="Preferences updated",
        data={"preferences": user.preferences.model_dump(by_alias=True)},
    )
