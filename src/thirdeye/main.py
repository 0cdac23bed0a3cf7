"""Desktop shell entry point: UI bridge server plus the bootstrap pipeline."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from thirdeye import __version__
from thirdeye.api.routes import router
from thirdeye.config import ShellConfig
from thirdeye.services.orchestrator import Orchestrator
from thirdeye.utils.logging import BRIDGE_SERVER_LOGGERS, setup_logger


def create_app(orchestrator: Orchestrator) -> FastAPI:
    """Build the bridge API bound to one orchestrator."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger("thirdeye.bridge")
        logger.info(f"UI bridge listening on {orchestrator.config.bridge_url}")
        yield
        logger.info("UI bridge stopped")

    app = FastAPI(
        title="The Third Eye Shell",
        description="Bridge between the desktop shell and its UI surfaces",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.include_router(router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "thirdeye-shell", "version": __version__}

    return app


async def run(config: ShellConfig) -> None:
    """Serve the bridge, bootstrap, and wait for an exit request.

    Shutdown always runs, so the agent never outlives the shell.
    """
    logger = setup_logger(
        "thirdeye",
        config.log_file,
        level=config.agent_log_level,
        also_capture=BRIDGE_SERVER_LOGGERS,
    )
    logger.info(f"The Third Eye shell {__version__} starting up...")
    config.data_dir.mkdir(parents=True, exist_ok=True)

    orchestrator = Orchestrator(config)
    app = create_app(orchestrator)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.bridge_host,
            port=config.bridge_port,
            log_level="warning",
            log_config=None,
            access_log=False,
        )
    )
    server_task = asyncio.create_task(server.serve())
    exit_task = asyncio.create_task(orchestrator.exit_requested.wait())

    try:
        await orchestrator.bootstrap()
        # uvicorn handles SIGINT/SIGTERM by stopping the server
        await asyncio.wait({server_task, exit_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        await orchestrator.shutdown()
        exit_task.cancel()
        server.should_exit = True
        await asyncio.gather(server_task, exit_task, return_exceptions=True)
        logger.info("The Third Eye shell exited")


def main():
    """Main entry point for the desktop shell."""
    config = ShellConfig.load()
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
