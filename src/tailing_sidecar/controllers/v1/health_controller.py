from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from fastapi_router_controller import Controller

router = APIRouter()
controller = Controller(router, openapi_tag={"name": "Health Api"})


@controller.use()
@controller.resource()
class HealthController:
    @controller.route.get("/healthz", summary="Liveness probe", response_class=PlainTextResponse)
    async def healthz(self) -> PlainTextResponse:
        return PlainTextResponse("ok")

    @controller.route.get("/readyz", summary="Readiness probe", response_class=PlainTextResponse)
    async def readyz(self) -> PlainTextResponse:
        return PlainTextResponse("ok")
