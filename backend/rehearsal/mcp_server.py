"""MCP Server for Rehearsal practice sessions."""
import asyncio
import json
from functools import lru_cache

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from rehearsal.config import settings
from rehearsal.container import Services, build_services
from rehearsal.db import get_engine, init_db
from rehearsal.errors import RehearsalError
from rehearsal.models import ChatTurnRequest, SessionView


# Create MCP server
server = Server("rehearsal")


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Build collaborators on first use; the stdio process is single-tenant."""
    engine = get_engine()
    init_db(engine)
    return build_services(engine, settings)


def _text(payload) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False, default=str))]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    user_id = {
        "type": "string",
        "description": "Owner of the session; omit for an anonymous session",
    }
    session_id = {
        "type": "string",
        "description": "The session ID returned from start_practice",
    }
    return [
        Tool(
            name="start_practice",
            description="Start a practice conversation for a scenario. Without a message the character opens the conversation.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scenario_id": {"type": "string", "description": "Scenario to practice"},
                    "message": {"type": "string", "description": "Optional first user message"},
                    "user_id": user_id,
                },
                "required": ["scenario_id"],
            },
        ),
        Tool(
            name="send_message",
            description="Send the next user message in an active practice session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "session_id": session_id,
                    "message": {"type": "string", "description": "The user's message"},
                    "user_id": user_id,
                },
                "required": ["session_id", "message"],
            },
        ),
        Tool(
            name="evaluate_session",
            description="Score a practice session against its scenario rubric.",
            inputSchema={
                "type": "object",
                "properties": {"session_id": session_id},
                "required": ["session_id"],
            },
        ),
        Tool(
            name="get_session",
            description="Get a practice session transcript and its evaluation, if any.",
            inputSchema={
                "type": "object",
                "properties": {"session_id": session_id, "user_id": user_id},
                "required": ["session_id"],
            },
        ),
        Tool(
            name="list_sessions",
            description="List a user's practice sessions, newest first.",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": user_id,
                    "page": {"type": "integer", "description": "Zero-based page", "default": 0},
                    "limit": {"type": "integer", "description": "Page size", "default": 10},
                },
                "required": ["user_id"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    handlers = {
        "start_practice": handle_start_practice,
        "send_message": handle_send_message,
        "evaluate_session": handle_evaluate_session,
        "get_session": handle_get_session,
        "list_sessions": handle_list_sessions,
    }
    handler = handlers.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(get_services(), arguments or {})
    except RehearsalError as e:
        return [TextContent(type="text", text=f"Error ({e.status_code}): {e.message}")]


async def handle_start_practice(services: Services, arguments: dict) -> list[TextContent]:
    """Handle start_practice tool call."""
    scenario_id = arguments.get("scenario_id", "")
    if not scenario_id:
        return [TextContent(type="text", text="Error: scenario_id is required")]

    message = arguments.get("message")
    request = ChatTurnRequest(
        scenario_id=scenario_id,
        message=message,
        is_initializing=not message,
    )
    result = await services.turn_engine.handle(request, arguments.get("user_id"))
    return _text({
        "session_id": result.session_id,
        "reply": result.reply,
        "turn": result.turn,
        "status": result.status,
    })


async def handle_send_message(services: Services, arguments: dict) -> list[TextContent]:
    """Handle send_message tool call."""
    session_id = arguments.get("session_id", "")
    if not session_id:
        return [TextContent(type="text", text="Error: session_id is required")]

    request = ChatTurnRequest(session_id=session_id, message=arguments.get("message"))
    result = await services.turn_engine.handle(request, arguments.get("user_id"))
    return _text({
        "session_id": result.session_id,
        "reply": result.reply,
        "turn": result.turn,
        "status": result.status,
    })


async def handle_evaluate_session(services: Services, arguments: dict) -> list[TextContent]:
    """Handle evaluate_session tool call."""
    session_id = arguments.get("session_id", "")
    if not session_id:
        return [TextContent(type="text", text="Error: session_id is required")]

    outcome = await services.evaluator.evaluate(session_id)
    return _text({
        "session_id": session_id,
        "degraded": outcome.is_degraded,
        "reason": outcome.reason,
        "evaluation": outcome.evaluation.model_dump(),
    })


async def handle_get_session(services: Services, arguments: dict) -> list[TextContent]:
    """Handle get_session tool call."""
    session_id = arguments.get("session_id", "")
    if not session_id:
        return [TextContent(type="text", text="Error: session_id is required")]

    session = services.sessions.get_by_id(session_id)
    if not session:
        return [TextContent(type="text", text=f"Session not found: {session_id}")]
    if session.user_id and session.user_id != arguments.get("user_id"):
        return [TextContent(type="text", text="Error: you do not have access to this session")]

    scenario = services.scenarios.get_by_id(session.scenario_id)
    return _text(SessionView.from_session(session, scenario).model_dump(mode="json"))


async def handle_list_sessions(services: Services, arguments: dict) -> list[TextContent]:
    """Handle list_sessions tool call."""
    user_id = arguments.get("user_id")
    if not user_id:
        return [TextContent(type="text", text="Error: user_id is required")]

    try:
        page = max(int(arguments.get("page", 0)), 0)
        limit = min(max(int(arguments.get("limit", 10)), 1), 100)
    except (TypeError, ValueError):
        return [TextContent(type="text", text="Error: page and limit must be integers")]

    sessions = services.sessions.list_for_user(user_id, skip=page * limit, limit=limit)

    result = {
        "total": services.sessions.count_for_user(user_id),
        "page": page,
        "sessions": [
            {
                "session_id": s.id,
                "scenario_id": s.scenario_id,
                "status": s.status,
                "turn_count": s.turn_count,
                "overall_score": s.overall_score,
                "created_at": s.created_at.isoformat(),
            }
            for s in sessions
        ],
    }
    return _text(result)


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
