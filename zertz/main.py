"""
Zertz Rules Service - FastAPI Application
Stateless rules endpoints: callers send a state, get legal moves or the
next state back. Persistence and room handling live with the caller.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field, ValidationError
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import config
from .board_manager import BoardManager
from .errors import InvalidMoveError, ZertzError
from .game_engine import GameEngine
from .metrics import GAMES_FINISHED, MOVES_APPLIED, observe_request
from .models import Move
from .notation import parse_notation
from .serialization import state_from_dict, state_to_dict

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Zertz Rules Service",
    description="Stateless Zertz rules engine: legal moves, capture chains, move application",
    version="1.0.0"
)


class NewGameRequest(BaseModel):
    """Request model for a fresh game"""
    board_size: Optional[int] = Field(None, alias="boardSize")

    class Config:
        populate_by_name = True


class StateRequest(BaseModel):
    """Request carrying a serialized game state"""
    state: Dict[str, Any]


class CaptureChainsRequest(BaseModel):
    """Request model for capture chain enumeration"""
    state: Dict[str, Any]
    ring_id: str = Field(alias="ringId")

    class Config:
        populate_by_name = True


class ApplyMoveRequest(BaseModel):
    """Request model for committing a move.

    Either ``move`` or ``notation`` must be given.
    """
    state: Dict[str, Any]
    move: Optional[Dict[str, Any]] = None
    notation: Optional[str] = None


class ApplyMoveResponse(BaseModel):
    """Response model for move application"""
    valid: bool
    validation_error: Optional[str] = Field(None, alias="validationError")
    rule_ref: Optional[str] = Field(None, alias="ruleRef")
    next_state: Optional[Dict[str, Any]] = Field(None, alias="nextState")
    notation: Optional[str] = None
    winner: Optional[str] = None
    win_type: Optional[str] = Field(None, alias="winType")

    class Config:
        populate_by_name = True


def _parse_move(raw: Dict[str, Any]) -> Move:
    try:
        return Move.model_validate(raw)
    except ValidationError as e:
        raise InvalidMoveError(
            "Invalid move payload", context={"errors": e.error_count()}
        ) from e


def _bad_request(endpoint: str, error: ZertzError) -> HTTPException:
    observe_request(endpoint, "bad_request")
    logger.warning("Rejected %s request: %s", endpoint, error)
    return HTTPException(status_code=400, detail=error.to_dict())


def _server_error(endpoint: str, error: Exception) -> HTTPException:
    observe_request(endpoint, "error")
    logger.error("Error in %s: %s", endpoint, str(error), exc_info=True)
    return HTTPException(status_code=500, detail=str(error))


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "service": "Zertz Rules Service",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check for container orchestration"""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.post("/rules/new_game")
async def new_game(request: NewGameRequest):
    endpoint = "/rules/new_game"
    try:
        size = request.board_size
        if size is not None:
            BoardManager.layout_for(size)
        state = GameEngine.create_initial_state(size)
        observe_request(endpoint, "ok")
        return {"state": state_to_dict(state)}
    except ZertzError as e:
        raise _bad_request(endpoint, e)
    except Exception as e:
        raise _server_error(endpoint, e)


@app.post("/rules/valid_moves")
async def valid_moves(request: StateRequest):
    """List the legal moves for the player to move.

    In the ``ringRemoval`` phase only ``removableRings`` is meaningful.
    """
    endpoint = "/rules/valid_moves"
    try:
        state = state_from_dict(request.state)
        available = GameEngine.get_available_moves(state)
        observe_request(endpoint, "ok")
        return {
            "phase": state.phase.value,
            "currentPlayer": state.current_player.value,
            "type": available.type.value,
            "captures": [
                c.model_dump(by_alias=True, mode="json", exclude={"chain"})
                for c in available.captures
            ],
            "placements": [
                {"ringId": p.ring_id, "colors": [c.value for c in p.colors]}
                for p in available.placements
            ],
            "removableRings": BoardManager.get_valid_removable_rings(state.rings),
        }
    except ZertzError as e:
        raise _bad_request(endpoint, e)
    except Exception as e:
        raise _server_error(endpoint, e)


@app.post("/rules/capture_chains")
async def capture_chains(request: CaptureChainsRequest):
    endpoint = "/rules/capture_chains"
    try:
        state = state_from_dict(request.state)
        chains: List[List[Dict[str, Any]]] = [
            [
                step.model_dump(by_alias=True, mode="json", exclude={"chain"})
                for step in chain
            ]
            for chain in GameEngine.get_capture_chains(state, request.ring_id)
        ]
        observe_request(endpoint, "ok")
        return {"ringId": request.ring_id, "chains": chains}
    except ZertzError as e:
        raise _bad_request(endpoint, e)
    except Exception as e:
        raise _server_error(endpoint, e)


@app.post("/rules/apply_move", response_model=ApplyMoveResponse, response_model_by_alias=True)
async def apply_move(request: ApplyMoveRequest):
    """Validate and commit one full turn.

    Illegal moves are not HTTP errors: they come back with
    ``valid=False`` and the reason.
    """
    endpoint = "/rules/apply_move"
    try:
        state = state_from_dict(request.state)
        if request.move is not None:
            move = _parse_move(request.move)
        elif request.notation:
            move = parse_notation(request.notation, state.board_size)
        else:
            raise InvalidMoveError("Either 'move' or 'notation' is required")

        result = GameEngine.apply_move(state, move)
        if not result.success:
            observe_request(endpoint, "rejected")
            return ApplyMoveResponse(
                valid=False,
                validation_error=result.error,
                rule_ref=result.rule_ref,
            )

        MOVES_APPLIED.labels(move_type=move.type.value).inc()
        if result.win_type is not None:
            GAMES_FINISHED.labels(win_type=result.win_type.value).inc()
        observe_request(endpoint, "ok")
        return ApplyMoveResponse(
            valid=True,
            next_state=state_to_dict(result.state),
            notation=result.notation,
            winner=result.winner.value if result.winner else None,
            win_type=result.win_type.value if result.win_type else None,
        )
    except ZertzError as e:
        raise _bad_request(endpoint, e)
    except Exception as e:
        raise _server_error(endpoint, e)
