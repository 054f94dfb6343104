"""API routes for the Rehearsal backend."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from rehearsal.container import Services
from rehearsal.errors import RehearsalError
from rehearsal.models import (
    ChatTurnRequest,
    ChatTurnResponse,
    EvaluateRequest,
    EvaluateResponse,
    Scenario,
    ScenarioGenerateRequest,
    SessionListResponse,
    SessionView,
    utc_now,
)


router = APIRouter()


def get_services(request: Request) -> Services:
    """Collaborators built by the application lifespan."""
    return request.app.state.services


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Requesting user; authentication itself happens upstream."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None


def _http_error(exc: RehearsalError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": utc_now().isoformat()}


@router.post("/api/chat", response_model=ChatTurnResponse)
async def chat_turn(
    request: ChatTurnRequest,
    services: Services = Depends(get_services),
    user_id: Optional[str] = Depends(get_user_id),
):
    """
    Create a session or continue an existing one.

    Without a sessionId a session is created from scenarioId, either primed
    with the character's opening line or answering the first user message.
    """
    try:
        result = await services.turn_engine.handle(request, user_id)
    except RehearsalError as exc:
        raise _http_error(exc)

    return ChatTurnResponse(
        session_id=result.session_id,
        reply=result.reply,
        turn=result.turn,
        status=result.status,
    )


@router.post("/api/eval", response_model=EvaluateResponse)
async def evaluate_session(
    request: EvaluateRequest,
    services: Services = Depends(get_services),
):
    """
    Evaluate a session transcript.

    Always answers 200 with an evaluation; `degraded`/`reason` tell a real
    score apart from the default one.
    """
    if not request.session_id or not request.session_id.strip():
        raise HTTPException(status_code=400, detail="Session ID is required")

    outcome = await services.evaluator.evaluate(request.session_id.strip())
    return EvaluateResponse(
        success=True,
        evaluation=outcome.evaluation,
        degraded=outcome.is_degraded,
        reason=outcome.reason,
    )


@router.get("/api/sessions/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str,
    services: Services = Depends(get_services),
    user_id: Optional[str] = Depends(get_user_id),
):
    """Get a session without its system messages."""
    session = services.sessions.get_by_id(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.user_id and session.user_id != user_id:
        raise HTTPException(status_code=403, detail="You do not have access to this session")

    scenario = services.scenarios.get_by_id(session.scenario_id)
    return SessionView.from_session(session, scenario)


@router.get("/api/sessions", response_model=SessionListResponse)
async def list_sessions(
    page: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
    user_id: Optional[str] = Depends(get_user_id),
):
    """List the requesting user's sessions, newest first."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    skip = page * limit
    sessions = services.sessions.list_for_user(user_id, skip=skip, limit=limit)
    total = services.sessions.count_for_user(user_id)
    scenarios = services.scenarios.get_many({s.scenario_id for s in sessions})

    items = [SessionView.from_session(s, scenarios.get(s.scenario_id)) for s in sessions]
    return SessionListResponse(
        sessions=items,
        total=total,
        page=page,
        limit=limit,
        has_more=len(sessions) == limit and skip + limit < total,
        loaded=len(items),
    )


@router.post("/api/scenarios/generate")
async def generate_scenario(
    request: ScenarioGenerateRequest,
    services: Services = Depends(get_services),
):
    """Generate and store a new scenario."""
    try:
        scenario = await services.scenario_generator.generate(request)
    except RehearsalError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to generate scenario: {exc.message}")

    return {"scenarioId": scenario.id, **scenario.model_dump()}


@router.get("/api/scenarios/{scenario_id}", response_model=Scenario)
async def get_scenario(scenario_id: str, services: Services = Depends(get_services)):
    """Get a scenario by ID."""
    scenario = services.scenarios.get_by_id(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return scenario


@router.post("/api/scenarios/{scenario_id}/opening")
async def generate_opening(scenario_id: str, services: Services = Depends(get_services)):
    """Generate the character's opening line for a scenario."""
    scenario = services.scenarios.get_by_id(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return {"message": await services.opening.generate(scenario)}
