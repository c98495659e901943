import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from quiz_server import load_secrets
from quiz_server.authentication.session_codec import SessionCodec
from quiz_server.controller import QuizController
from quiz_server.domain.catalog import Catalog
from quiz_server.models.api_models import ErrorCode, ErrorReply
from quiz_server.routers.quiz import quiz_router
from quiz_server.services.record_writer import UserWriter, WriteFailure


def create_app(quiz_controller: QuizController, cors_origin: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app):
        """Close the users CSV once the server stops"""
        try:
            yield
        finally:
            quiz_controller.user_writer.close()
            logging.info("Stop Server")

    app = FastAPI(lifespan=lifespan)
    app.state.quiz_controller = quiz_controller
    app.include_router(quiz_router)

    if cors_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[cors_origin],
            allow_methods=["GET", "POST"],
            allow_headers=["Authorization", "Content-Type"],
        )

    @app.exception_handler(WriteFailure)
    async def write_failure_handler(request: Request, exc: WriteFailure):
        logging.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorReply(error=ErrorCode.ServerError).model_dump(mode="json"),
        )

    return app


def build_controller() -> QuizController:
    """Wire the controller from the environment. Any failure here aborts startup."""
    secret_key = load_secrets.parse_secret_key(load_secrets.secret_key_hex)
    catalog = Catalog.load(load_secrets.quiz_config_path)
    user_writer = UserWriter(load_secrets.users_csv_path)
    return QuizController(SessionCodec(secret_key), catalog, user_writer)


def parse_bind(bind: str) -> tuple[str, int]:
    """Split "host:port" into its parts. IPv6 hosts are written "[::1]:3030"."""
    host, _, port = bind.rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


def run():
    logging.basicConfig(level=load_secrets.log_level)
    host, port = parse_bind(load_secrets.bind)
    app = create_app(build_controller(), load_secrets.cors_origin)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
