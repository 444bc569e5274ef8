from __future__ import annotations

import logging

from fastapi import FastAPI

from services.upload.api.routes import create_router
from services.upload.application.interfaces import IdentityResolver
from services.upload.application.use_cases.upload_video import UploadVideoUseCase
from services.upload.config import UploadConfig, load_config
from services.upload.infrastructure.auth import JwtIdentityResolver
from services.upload.infrastructure.db import create_session_factory
from services.upload.infrastructure.ids import RandomTokenProvider
from services.upload.infrastructure.probe import create_media_prober
from services.upload.infrastructure.remux import create_media_normalizer
from services.upload.infrastructure.staging import LocalStagingArea
from services.upload.infrastructure.storage import create_object_publisher
from services.upload.infrastructure.tools import SubprocessToolRunner
from services.upload.infrastructure.videos import SqlVideoRepository


def build_upload_use_case(cfg: UploadConfig) -> UploadVideoUseCase:
    runner = SubprocessToolRunner(default_timeout=cfg.process_timeout_seconds)
    session_factory = create_session_factory(cfg.database_url)
    return UploadVideoUseCase(
        repository=SqlVideoRepository(session_factory=session_factory),
        staging=LocalStagingArea(cfg.assets_root),
        normalizer=create_media_normalizer(cfg, runner),
        prober=create_media_prober(cfg, runner),
        publisher=create_object_publisher(cfg),
        token_provider=RandomTokenProvider(),
        distribution_base_url=cfg.distribution_base_url,
        max_upload_bytes=cfg.max_upload_bytes,
        accepted_media_types=cfg.accepted_media_types,
    )


def build_app(
    config: UploadConfig | None = None,
    *,
    use_case: UploadVideoUseCase | None = None,
    identity_resolver: IdentityResolver | None = None,
) -> FastAPI:
    cfg = config
    if cfg is None and (use_case is None or identity_resolver is None):
        cfg = load_config()
    if cfg is not None:
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    upload_use_case = use_case or build_upload_use_case(cfg)
    resolver = identity_resolver or JwtIdentityResolver(cfg.jwt_secret)

    app.include_router(create_router(upload_use_case, resolver))

    return app


def create_app() -> FastAPI:
    return build_app()
