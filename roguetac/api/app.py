"""
FastAPI Application - REST API for the game engine.

Endpoints:
    POST   /api/v1/sessions                        Create a session (run starts on floor 1)
    GET    /api/v1/sessions                        List active sessions
    GET    /api/v1/sessions/{id}                   Get session status and state
    DELETE /api/v1/sessions/{id}                   End session
    GET    /api/v1/sessions/{id}/state             Get run state
    POST   /api/v1/sessions/{id}/restart           Restart the run
    POST   /api/v1/sessions/{id}/moves             Place the player's mark
    POST   /api/v1/sessions/{id}/cards/arm         Arm a card
    POST   /api/v1/sessions/{id}/cards/clear       Disarm the armed card
    POST   /api/v1/sessions/{id}/cards/target      Target a cell with the armed card
    POST   /api/v1/sessions/{id}/rewards           Choose a reward
    POST   /api/v1/sessions/{id}/rematch           Rematch after a draw

Opponent Timing:
    The opponent replies opponent_delay_ms after a player move. Every
    read or command on a session first fires any reply that has come
    due, so polling GET /state is enough to see it.

All responses are JSON with explicit Pydantic schemas. Rejected
commands return 409 with an ErrorResponse carrying the engine's code.
"""

from typing import Optional, Union
import logging
import os

from .. import __version__

# Environment configuration
ROGUETAC_ENV = os.getenv("ROGUETAC_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from ..config import EngineConfig
    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        MoveRequest,
        ArmCardRequest,
        TargetRequest,
        RewardRequest,
        # Response models
        CommandResponse,
        SessionResponse,
        GameStateResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="RogueTac Engine API",
        description="""
Roguelike tic-tac-toe: climb floors on a growing board against an
opponent with passive abilities, using a small hand of cards.

## Opponent Timing

After `POST /moves` the opponent replies once its delay has elapsed.
Poll `GET /state` (or issue the next command) to see the reply.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist (404) |
| `VALIDATION_ERROR` | Session parameters are invalid (400) |
| `OPPONENT_THINKING` | The opponent has not replied yet (409) |
| `CELL_OCCUPIED`, `CELL_LOCKED`, `OUT_OF_RANGE` | Illegal cell (409) |
| `NOT_ENOUGH_ENERGY`, `NO_CHARGES`, `CARD_NOT_OWNED` | Card unavailable (409) |
| `WRONG_PHASE` | Command not valid in the current phase (409) |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        from ..session import SessionManager
        config = EngineConfig.from_env()
        service = APIService(
            session_manager=SessionManager(default_config=config),
            base_config=config,
        )
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def error_status(error_code: ErrorCode) -> int:
        if error_code == ErrorCode.SESSION_NOT_FOUND:
            return 404
        if error_code == ErrorCode.VALIDATION_ERROR:
            return 400
        if error_code in {ErrorCode.HANDLER_ERROR, ErrorCode.INTERNAL_ERROR}:
            return 500
        return 409

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=error_status(error.error_code),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    command_responses = {
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Command rejected"},
    }

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid parameters"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        request: Optional[CreateSessionRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """Create a session and start a run on floor 1. The body is optional."""
        return respond(api_service.create_session(request or CreateSessionRequest()))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> Union[EndSessionResponse, JSONResponse]:
        """End a game session and release its memory."""
        if not api_service.end_session(session_id):
            return make_error_response(ErrorResponse(
                error=f"Session {session_id} not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            ))
        return EndSessionResponse(success=True, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get run state",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Current run state. Fires the opponent's reply if it is due."""
        return respond(api_service.get_game_state(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/restart",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game"],
        summary="Restart the run from floor 1",
    )
    async def restart_run(session_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.restart_run(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/moves",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game"],
        summary="Place the player's mark",
    )
    async def play_move(session_id: str, request: MoveRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.play_move(session_id, request.cell_index))

    @app.post(
        "/api/v1/sessions/{session_id}/cards/arm",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Cards"],
        summary="Arm a card",
    )
    async def arm_card(session_id: str, request: ArmCardRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.arm_card(session_id, request.card_id))

    @app.post(
        "/api/v1/sessions/{session_id}/cards/clear",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Cards"],
        summary="Disarm the armed card",
    )
    async def clear_card(session_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.clear_card(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/cards/target",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Cards"],
        summary="Target a cell with the armed card",
    )
    async def target_cell(session_id: str, request: TargetRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.target_cell(session_id, request.cell_index))

    @app.post(
        "/api/v1/sessions/{session_id}/rewards",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game"],
        summary="Choose a reward after clearing a floor",
    )
    async def choose_reward(session_id: str, request: RewardRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.choose_reward(session_id, request.option_index))

    @app.post(
        "/api/v1/sessions/{session_id}/rematch",
        response_model=CommandResponse,
        responses=command_responses,
        tags=["Game"],
        summary="Rematch the same floor after a draw",
    )
    async def rematch(session_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.rematch(session_id))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="roguetac-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "RogueTac Engine API",
            "version": __version__,
            "environment": ROGUETAC_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.info("API created (%s)", ROGUETAC_ENV)
    return app


# For running directly: uvicorn roguetac.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
