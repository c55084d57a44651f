from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query

from app.api.deps import get_analysis_service
from app.models.payload import AnalyzePayload
from app.models.payload import FeedbackPayload
from app.models.response import Response
from app.services.analysis_service import AnalysisService
from app.utils.logger import get_logger
from app.utils.security import get_current_user_id

logger = get_logger("api.analysis")

router = APIRouter(tags=["Analysis"])


@router.post(
    "",
    response_model=Response,
    summary="Analyze an ingredient label",
    description="Submit a base64 label image or extracted ingredient text and get an explainable assessment",
    responses={
        400: {"description": "Missing input or not enough readable text"},
        502: {"description": "OCR or AI service unavailable"},
    },
)
async def analyze(
    payload: AnalyzePayload,
    user_id: str = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    record = await service.analyze(user_id, image_data=payload.image_data, text=payload.text)
    return Response(success=True, message="Analysis completed successfully", data=record.summary())


@router.get("/history", response_model=Response, summary="List the caller's past analyses")
async def history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    return Response(success=True, data=await service.history(user_id, page, limit))


@router.get("/{analysis_id}", response_model=Response, summary="Fetch one analysis")
async def get_analysis(
    analysis_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    record = await service.get(user_id, analysis_id)
    return Response(success=True, data=record.model_dump(by_alias=True, mode="json"))


@router.post("/{analysis_id}/feedback", response_model=Response, summary="Rate an analysis")
async def submit_feedback(
    analysis_id: str,
    payload: FeedbackPayload,
    user_id: str = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    record = await service.submit_feedback(
        user_id, analysis_id, payload.helpful, rating=payload.rating, comments=payload.comments
    )
    return Response(
        success=True,
        message="Feedback submitted successfully",
        data={"analysisId": record.id, "feedback": record.feedback.model_dump(by_alias=True, mode="json")},
    )
