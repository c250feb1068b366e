"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to GameLoop commands
2. Manages sessions
3. Advances each session's scheduler before reading or acting
4. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Callable
import logging

from .schemas import (
    CommandResponse,
    CreateSessionRequest,
    EncounterInfo,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    HandCardInfo,
    LastMoveInfo,
    PendingCardInfo,
    RewardOptionInfo,
    SessionResponse,
)
from ..config import EngineConfig, GameMode
from ..engine_core.action import ActionResult
from ..rules.validation import ConfigurationError
from ..session import GameLoop, Session, SessionManager

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(mode="score"))
        response = service.play_move(session.session_id, 12)
        if isinstance(response, ErrorResponse):
            show(response.error_code)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    base_config: EngineConfig = field(default_factory=EngineConfig)
    idle_timeout_seconds: int = 3600

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """Create a new game session with a run already started."""
        self.session_manager.cleanup_idle_sessions(self.idle_timeout_seconds)

        overrides = {}
        if request.mode is not None:
            overrides["mode"] = GameMode(request.mode.value)
        for name in ("seed", "score_to_win", "boss_interval", "opponent_delay_ms"):
            value = getattr(request, name)
            if value is not None:
                overrides[name] = value

        try:
            config = replace(self.base_config, **overrides).validate()
        except ConfigurationError as e:
            return ErrorResponse(
                error=str(e),
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"errors": e.errors},
            )

        session = self.session_manager.create_session(config)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self._get_active(session_id)
        if session is None:
            return self._not_found(session_id)
        session.touch()
        session.loop.advance()
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """Current state. Fires the opponent move if its delay has elapsed."""
        session = self._get_active(session_id)
        if session is None:
            return self._not_found(session_id)
        session.touch()
        session.loop.advance()
        return self._build_game_state(session)

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Commands
    # =========================================================================

    def restart_run(self, session_id: str) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.restart_run())

    def play_move(self, session_id: str, cell_index: int) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.play_move(cell_index))

    def arm_card(self, session_id: str, card_id: str) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.arm_card(card_id))

    def clear_card(self, session_id: str) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.clear_card_selection())

    def target_cell(self, session_id: str, cell_index: int) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.target_cell(cell_index))

    def choose_reward(self, session_id: str, option_index: int) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.choose_reward(option_index))

    def rematch(self, session_id: str) -> CommandResponse | ErrorResponse:
        return self._command(session_id, lambda loop: loop.rematch())

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _command(
        self,
        session_id: str,
        issue: Callable[[GameLoop], ActionResult],
    ) -> CommandResponse | ErrorResponse:
        session = self._get_active(session_id)
        if session is None:
            return self._not_found(session_id)

        session.touch()
        session.loop.advance()
        result = issue(session.loop)

        if not result.success:
            code = result.error_code.value if result.error_code else ErrorCode.INTERNAL_ERROR.value
            return ErrorResponse(error=result.error or "Command rejected", error_code=ErrorCode(code))

        return CommandResponse(
            success=True,
            changes=result.state_changes,
            state=self._build_game_state(session),
        )

    def _get_active(self, session_id: str) -> Session | None:
        session = self.session_manager.get_session(session_id)
        if session is None or not session.is_active():
            return None
        return session

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            status=session.state.value,
            mode=session.config.mode.value,
            created_at=session.created_at,
            state=self._build_game_state(session),
        )

    def _build_game_state(self, session: Session) -> GameStateResponse | None:
        """Build complete game state response."""
        snapshot = session.loop.snapshot()
        if snapshot is None:
            return None

        return GameStateResponse(
            session_id=session.session_id,
            status=session.state.value,
            mode=snapshot.mode,
            phase=snapshot.phase,
            floor=snapshot.floor,
            size=snapshot.size,
            board=snapshot.board,
            turn=snapshot.turn,
            generation=snapshot.generation,
            energy=snapshot.energy,
            max_energy=snapshot.max_energy,
            hand=[HandCardInfo(**card) for card in snapshot.hand],
            locks=snapshot.locks,
            encounter=EncounterInfo(**snapshot.encounter),
            pending_card=PendingCardInfo(**snapshot.pending_card) if snapshot.pending_card else None,
            reward_options=[RewardOptionInfo(**option) for option in snapshot.reward_options],
            scores=snapshot.scores,
            score_to_win=snapshot.score_to_win,
            opponent_thinking=snapshot.opponent_thinking,
            last_move=LastMoveInfo(**snapshot.last_move) if snapshot.last_move else None,
            history_length=snapshot.history_length,
        )
