from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Depends
from fastapi_router_controller import Controller

from tailing_sidecar.controllers.common.dto import ApiErrorResponseDto
from tailing_sidecar.dependencies import get_pod_extender_service
from tailing_sidecar.entities.admission import AdmissionReview
from tailing_sidecar.services.pod_extender_service import PodExtenderService

router = APIRouter()
controller = Controller(router, openapi_tag={"name": "Tailing Sidecar Admission Api"})

COMMON_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    # 400 - AdmissionReview without request
    str(HTTPStatus.BAD_REQUEST.value): {
        "model": ApiErrorResponseDto,
        "description": HTTPStatus.BAD_REQUEST.phrase,
    },
    # 422 - raised by Pydantic on validation error
    str(HTTPStatus.UNPROCESSABLE_ENTITY.value): {
        "model": ApiErrorResponseDto,
        "description": HTTPStatus.UNPROCESSABLE_ENTITY.phrase,
    },
    # 500
    str(HTTPStatus.INTERNAL_SERVER_ERROR.value): {
        "model": ApiErrorResponseDto,
        "description": HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
    },
}


@controller.use()
@controller.resource()
class AdmissionController:
    @controller.route.post(
        "/add-tailing-sidecars-v1-pod",
        summary="Add tailing sidecars to Pod",
        response_model_by_alias=True,
        response_model_exclude_none=True,
        responses=COMMON_ERROR_RESPONSES,
    )
    async def add_tailing_sidecars(
        self,
        review: AdmissionReview,
        pod_extender_service: PodExtenderService = Depends(get_pod_extender_service),
    ) -> AdmissionReview:
        return await pod_extender_service.review(review)
