"""HTTP 서버 (Starlette)

- GET  /health        상태 확인
- POST /api/chat      {"prompt": ...} → {"intent", "agentName", "answer"}
- GET  /api/stream?q= Server-Sent Events 스트리밍
- GET  /api/models    Bedrock 파운데이션 모델 목록 (/api/models/{id}로 단건 확인)
"""

import logging
import os

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import iterate_in_threadpool, run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route

from intent_router.core.cancellation import CancellationToken
from intent_router.core.errors import ProviderError
from intent_router.logging_setup import setup_logging
from intent_router.services.agent.factory import get_agent_service
from intent_router.services.llm.factory import get_llm_service
from intent_router.services.llm.model_registry import BedrockModelRegistry
from intent_router.services.orchestration import Router
from intent_router.services.orchestration.models import Request as RoutingRequest
from intent_router.settings import Settings, get_settings, validate_settings

from .frames import clean_block, sse_frames

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Nginx 버퍼링 비활성화
}


def build_router(settings: Settings) -> Router:
    """설정으로 서비스와 라우터를 구성"""
    return Router(
        settings.to_routing_config(),
        llm_service=get_llm_service(settings),
        agent_service=get_agent_service(settings),
    )


def create_app(
    settings: Settings | None = None,
    router: Router | None = None,
    model_registry: BedrockModelRegistry | None = None,
) -> Starlette:
    """Starlette 앱 생성

    Args:
        settings: 애플리케이션 설정 (없으면 환경에서 로드)
        router: 주입할 라우터 (테스트용, 없으면 설정으로 구성)
        model_registry: 주입할 모델 레지스트리 (테스트용, 없으면 설정 리전으로 구성)

    Returns:
        Starlette 앱
    """
    settings = settings or get_settings()
    router = router or build_router(settings)
    model_registry = model_registry or BedrockModelRegistry(
        region=settings.aws_region,
        profile=settings.aws_profile,
        max_attempts=settings.aws_max_attempts,
    )

    async def health(_request):
        return JSONResponse({"ok": True})

    async def livez(_request):
        return PlainTextResponse("OK")

    async def readyz(_request):
        return PlainTextResponse("READY")

    async def version(_request):
        return JSONResponse({"version": os.getenv("APP_VERSION", "dev")})

    async def models(_request):
        try:
            listing = await run_in_threadpool(model_registry.list_available_models)
        except ProviderError as e:
            logger.error("Model registry error: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)
        return JSONResponse(listing)

    async def model_detail(request):
        model_id = request.path_params["model_id"]
        try:
            result = await run_in_threadpool(model_registry.find_model, model_id)
        except ProviderError as e:
            logger.error("Model registry error: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)
        return JSONResponse(result, status_code=200 if result["found"] else 404)

    async def chat(request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        prompt = body.get("prompt") if isinstance(body, dict) else None
        if not prompt:
            return JSONResponse({"error": "Missing prompt"}, status_code=400)

        try:
            result = await run_in_threadpool(router.route_once, RoutingRequest(text=str(prompt)))
        except ProviderError as e:
            logger.error("Chat route error: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)

        return JSONResponse(
            {
                "intent": result.label.value,
                "agentName": result.display_name,
                "answer": clean_block(result.answer),
            }
        )

    async def stream(request):
        prompt = request.query_params.get("q", "")
        if not prompt:
            return Response(status_code=400)

        cancel_token = CancellationToken()
        routing_request = RoutingRequest(text=prompt, cancel_token=cancel_token)

        async def frames():
            events = router.route_stream(routing_request)
            try:
                async for frame in iterate_in_threadpool(sse_frames(events, cancel_token)):
                    yield frame
            finally:
                # 클라이언트 연결 종료 시 업스트림 중단
                cancel_token.cancel()

        return StreamingResponse(
            frames(), media_type="text/event-stream; charset=utf-8", headers=SSE_HEADERS
        )

    routes = [
        Route("/health", endpoint=health),
        Route("/livez", endpoint=livez),
        Route("/readyz", endpoint=readyz),
        Route("/version", endpoint=version),
        Route("/api/models", endpoint=models, methods=["GET"]),
        Route("/api/models/{model_id:path}", endpoint=model_detail, methods=["GET"]),
        Route("/api/chat", endpoint=chat, methods=["POST"]),
        Route("/api/stream", endpoint=stream, methods=["GET"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_origin],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "Accept"],
            expose_headers=["Content-Type", "Cache-Control"],
        )
    ]

    return Starlette(routes=routes, middleware=middleware)


def main() -> None:
    """uvicorn으로 서버 실행"""
    settings = get_settings()
    setup_logging(settings.log_level)

    for key, message in validate_settings(settings).items():
        logger.warning("[%s] %s", key, message)

    logger.info(
        "Boot config: region=%s llm=%s agent=%s", settings.aws_region, settings.llm_provider, settings.agent_provider
    )
    logger.info("🌐 서버 주소: http://%s:%s", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
