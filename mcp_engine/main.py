import json
import logging
from typing import Optional
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from mcp_engine.config import Config, config
from mcp_engine.core.jsonrpc import ErrorCode, error_response
from mcp_engine.core.session import Session, SessionManager
from mcp_engine.server.registry import registry
from mcp_engine.server.router import Server

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"


def _rpc_error(status_code: int, code: int, message: str, request_id=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(request_id, code, message).to_dict(),
        headers=headers,
    )


def create_app(
    server: Optional[Server] = None,
    sessions: Optional[SessionManager] = None,
    settings: Optional[Config] = None,
) -> FastAPI:
    settings = settings if settings is not None else config
    server = server if server is not None else Server.from_config(settings, registry)
    sessions = sessions if sessions is not None else SessionManager()

    app = FastAPI(title=settings.mcp.name)
    app.state.server = server
    app.state.sessions = sessions

    # CORS Middleware
    origins = settings.allowed_origins or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )

    def _origin_allowed(origin):
        if not settings.allowed_origins:
            return True
        if not origin:
            return True
        return origin in settings.allowed_origins

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({"event": "config_loaded", "config": settings.to_log_dict()}, ensure_ascii=False))

    async def _initialize(message) -> Response:
        session = sessions.create_session()
        try:
            response = await session.run(lambda: server.handle(message, session.id))
        except Exception:
            sessions.remove_session(session.id)
            raise

        if response is None or "error" in response:
            sessions.remove_session(session.id)
            if response is None:
                return Response(status_code=202)
            return JSONResponse(content=response)

        session.activate()
        return JSONResponse(content=response, headers={SESSION_HEADER: session.id})

    async def _in_session(session: Session, message) -> Response:
        response = await session.run(lambda: server.handle(message, session.id))
        if response is None:
            return Response(status_code=202, headers={SESSION_HEADER: session.id})
        return JSONResponse(content=response, headers={SESSION_HEADER: session.id})

    @app.post("/mcp")
    async def mcp_post(request: Request):
        """Streamable HTTP endpoint: one JSON-RPC message per POST."""
        origin = request.headers.get("origin")
        if not _origin_allowed(origin):
            return Response(status_code=403)

        try:
            body = await request.body()
            rpc_message = json.loads(body)
        except ValueError:
            return _rpc_error(400, ErrorCode.PARSE_ERROR, "Parse error")

        session_id = request.headers.get(SESSION_HEADER)
        if not session_id:
            if isinstance(rpc_message, dict) and rpc_message.get("method") == "initialize":
                return await _initialize(rpc_message)
            return _rpc_error(400, ErrorCode.INVALID_REQUEST, f"Bad Request: missing {SESSION_HEADER} header")

        session = sessions.get_session(session_id)
        if session is None or not session.is_active:
            return _rpc_error(404, ErrorCode.INVALID_REQUEST, "Session not found")

        return await _in_session(session, rpc_message)

    @app.delete("/mcp")
    async def mcp_delete(request: Request):
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id or sessions.remove_session(session_id) is None:
            return Response(status_code=404, content="Session not found")
        return Response(status_code=204)

    @app.get("/mcp")
    async def mcp_get(request: Request):
        # No server-initiated stream
        return Response(status_code=405, headers={"Allow": "POST, DELETE"})

    @app.get("/")
    async def root():
        return {"status": "online", "service": settings.mcp.name, "sessions": len(sessions)}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info(f"Access: {request.method} {request.url} from {client}")
        response = await call_next(request)
        return response

    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=config.server.log_level)


if __name__ == "__main__":
    run()
