# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from dotenv import load_dotenv
import logging
from pathlib import Path
import sys

# Add the 'src' directory to the Python path to allow importing 'credential_keeper'
sys.path.append(str(Path(__file__).resolve().parent.parent))

from credential_keeper import AuthConfig, CredentialCoordinator, set_coordinator
from credential_keeper.failure_logger import setup_credential_logger
from keeper_app.routers import auth_router, status_router

# Configure logging
logging.basicConfig(level=logging.INFO)

# Load environment variables from .env file
load_dotenv()


def build_coordinator(config: Optional[AuthConfig] = None) -> CredentialCoordinator:
    """Build the process coordinator once, at startup, from the environment."""
    config = config or AuthConfig.from_env()
    config.validate()
    setup_credential_logger(config.log_dir)
    coordinator = CredentialCoordinator(config)
    set_coordinator(coordinator)
    return coordinator


def create_app(coordinator: Optional[CredentialCoordinator] = None) -> FastAPI:
    # --- Lifespan Management ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage the coordinator and its auto-renewal with the app's lifespan."""
        app.state.coordinator = coordinator or build_coordinator()
        app.state.pending_oauth_states = {}
        await app.state.coordinator.refreshing.start()
        logging.info("Credential coordinator initialized.")
        yield
        await app.state.coordinator.refreshing.close()
        logging.info("Credential coordinator closed.")

    # --- FastAPI App Setup ---
    app = FastAPI(lifespan=lifespan)
    app.include_router(auth_router)
    app.include_router(status_router)

    @app.get("/")
    def read_root():
        return {"Status": "Credential keeper is running"}

    return app


app = create_app()
