"""HTTP + MCP server exposing the research, news digest, travel agent and trip planner pipelines."""

import json
import logging
import os
import sys
import time
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import TYPE_CHECKING, Any


def _configure_logging() -> None:
    """Send all logs to stderr and quiet noisy dependencies."""
    os.environ.setdefault("BROWSER_USE_LOGGING_LEVEL", "warning")

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger()
    root.handlers = [stderr_handler]
    root.setLevel(logging.WARNING)

    for logger_name in ["httpx", "httpcore", "asyncio", "browser_use", "openai", "anthropic"]:
        dep_logger = logging.getLogger(logger_name)
        dep_logger.setLevel(logging.WARNING)
        dep_logger.handlers = [stderr_handler]
        dep_logger.propagate = False


# Configure logging BEFORE importing browser_use through the providers
_configure_logging()

# ruff: noqa: E402 - Intentional late imports after logging configuration
from fastmcp import FastMCP
from fastmcp.dependencies import CurrentContext, Progress
from fastmcp.server.context import Context
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from .chat import ChatService, load_faq
from .config import AppSettings, get_settings
from .events import SSE_HEADERS, PipelineEvent, encode_sse
from .exceptions import AssistantError, LLMProviderError
from .observability import setup_structured_logging
from .pipelines import build_digest_machine, build_research_machine, build_travel_agent, build_travel_planner, resolve_backend
from .travel import parse_travel_request
from .utils import save_execution_result

if TYPE_CHECKING:
    from .news import DigestMachine
    from .research import ResearchMachine
    from .travel import TravelPlanner

logger = logging.getLogger("mcp_server_assistant")

# Track server start time for uptime calculation
_server_start_time = time.time()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parsed JSON object body, or a 400 response."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError):
        return _error("Request body must be valid JSON", 400)
    if not isinstance(body, dict):
        return _error("Request body must be a JSON object", 400)
    return body


def _required_text(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def _single_error(message: str) -> AsyncIterator[PipelineEvent]:
    yield PipelineEvent("error", {"message": message})


def _sse_response(events: AsyncIterator[PipelineEvent]) -> StreamingResponse:
    async def _body() -> AsyncIterator[str]:
        # closing the event iterator cancels the run when the client disconnects
        async with aclosing(events) as stream:
            async for event in stream:
                yield encode_sse(event)

    return StreamingResponse(_body(), media_type="text/event-stream", headers=SSE_HEADERS)


async def _report_progress(progress: Progress | None, event: PipelineEvent, last: int) -> int:
    """Forward a progress event to the MCP progress dependency; returns the new percentage."""
    if progress is None or event.event != "progress":
        return last
    percentage = event.data["percentage"]
    if event.data.get("task"):
        await progress.set_message(event.data["task"])
    if percentage > last:
        await progress.increment(percentage - last)
    return max(last, percentage)


def serve(
    settings: AppSettings | None = None,
    research_factory: Callable[[], "ResearchMachine"] | None = None,
    digest_factory: Callable[[], "DigestMachine"] | None = None,
    chat_service: ChatService | None = None,
    planner_factory: Callable[[], "TravelPlanner"] | None = None,
) -> FastMCP:
    """Create the MCP server and its HTTP routes.

    Pipelines are built per request from ``settings``; the factories and
    chat service can be replaced for testing.
    """
    settings = settings or get_settings()
    research_factory = research_factory or (lambda: build_research_machine(settings))
    digest_factory = digest_factory or (lambda: build_digest_machine(settings))
    chat_service = chat_service or ChatService(load_faq(), agent_factory=lambda: build_travel_agent(settings))
    planner_factory = planner_factory or (lambda: build_travel_planner(settings))

    server = FastMCP("mcp_server_assistant")

    def _save(content: str, prefix: str, metadata: dict[str, Any]) -> None:
        if settings.server.results_dir:
            save_execution_result(content, prefix=prefix, metadata=metadata, results_dir=settings.get_results_dir())

    # --- HTTP routes ---

    @server.custom_route("/api/research/stream", methods=["GET", "POST"])
    async def research_stream(request: Request) -> Response:
        if request.method != "POST":
            return _error("Method not allowed, use POST", 405)
        body = await _read_body(request)
        if isinstance(body, JSONResponse):
            return body
        topic = _required_text(body, "topic")
        if topic is None:
            return _error("Missing research topic", 400)

        backend = resolve_backend(settings, body.get("searchBackend"))
        try:
            machine = research_factory()
        except LLMProviderError as e:
            logger.error(f"LLM initialization failed: {e}")
            return _sse_response(_single_error(str(e)))

        logger.info(f"Starting research stream on '{topic}' with {backend}")
        return _sse_response(machine.run(topic, backend))

    @server.custom_route("/api/news/digest", methods=["GET", "POST"])
    async def news_digest(request: Request) -> Response:
        if request.method != "POST":
            return _error("Method not allowed, use POST", 405)
        body = await _read_body(request)
        if isinstance(body, JSONResponse):
            return body
        topic = _required_text(body, "topic")
        if topic is None:
            return _error("Missing news topic", 400)

        try:
            machine = digest_factory()
        except LLMProviderError as e:
            logger.error(f"LLM initialization failed: {e}")
            return _sse_response(_single_error(str(e)))

        logger.info(f"Starting news digest stream on '{topic}'")
        return _sse_response(machine.run(topic))

    @server.custom_route("/api/chat", methods=["GET", "POST"])
    async def chat(request: Request) -> Response:
        if request.method != "POST":
            return _error("Method not allowed, use POST", 405)
        body = await _read_body(request)
        if isinstance(body, JSONResponse):
            return body
        question = _required_text(body, "question")
        if question is None:
            return _error("Missing question", 400)

        model = body.get("model") if isinstance(body.get("model"), str) else None
        return JSONResponse(await chat_service.answer(question, model))

    @server.custom_route("/api/travel/plan", methods=["GET", "POST"])
    async def travel_plan(request: Request) -> Response:
        started = time.perf_counter()

        def _failed(message: str, status_code: int) -> JSONResponse:
            duration = round((time.perf_counter() - started) * 1000)
            return JSONResponse({"success": False, "error": message, "duration": duration}, status_code=status_code)

        if request.method != "POST":
            return _failed("Method not allowed, use POST", 405)
        body = await _read_body(request)
        if isinstance(body, JSONResponse):
            return body
        try:
            travel_request = parse_travel_request(body, settings.travel.max_days)
        except ValueError as e:
            return _failed(str(e), 400)

        logger.info(f"Planning trip to {travel_request.destination}")
        try:
            plan = await planner_factory().plan(travel_request)
        except Exception as e:
            logger.error(f"Trip planning failed: {e}")
            return _failed(f"Trip planning failed: {e}", 500)

        duration = round((time.perf_counter() - started) * 1000)
        logger.info(f"Trip plan ready in {duration}ms")
        return JSONResponse({"success": True, "plan": plan.to_dict(), "duration": duration})

    @server.custom_route("/api/health", methods=["GET"])
    async def health(request: Request) -> Response:
        import psutil

        memory_info = psutil.Process().memory_info()
        return JSONResponse(
            {
                "status": "healthy",
                "uptime_seconds": round(time.time() - _server_start_time, 1),
                "memory_mb": round(memory_info.rss / 1024 / 1024, 1),
            }
        )

    # --- MCP tools ---

    @server.tool()
    async def run_deep_research(
        topic: str,
        search_backend: str | None = None,
        ctx: Context = CurrentContext(),
        progress: Progress = Progress(),
    ) -> str:
        """
        Research a topic: plan 3-5 sub-tasks, search and summarize each, and write a report.

        Args:
            topic: The research topic or question to investigate
            search_backend: tavily, duckduckgo, serper or bing (default from settings)

        Returns:
            The research report as markdown
        """
        try:
            machine = research_factory()
        except LLMProviderError as e:
            logger.error(f"LLM initialization failed: {e}")
            return f"Error: {e}"

        backend = resolve_backend(settings, search_backend)
        await ctx.info(f"Researching: {topic}")
        await progress.set_total(100)

        last = 0
        async with aclosing(machine.run(topic, backend)) as events:
            async for event in events:
                last = await _report_progress(progress, event, last)
                if event.event == "error":
                    raise AssistantError(event.data["message"])

        if machine.outcome is None:
            raise AssistantError("Research ended without a report")

        _save(
            machine.outcome.report,
            prefix=f"research_{topic[:20]}",
            metadata={"topic": topic, "search_backend": backend, "tasks_completed": machine.outcome.tasks_completed},
        )
        return machine.outcome.report

    @server.tool()
    async def generate_news_digest(
        topic: str,
        ctx: Context = CurrentContext(),
        progress: Progress = Progress(),
    ) -> str:
        """
        Build a dated daily digest of Google News headlines for a topic.

        Args:
            topic: News topic, e.g. "technology" or "electric cars"

        Returns:
            The digest as markdown
        """
        try:
            machine = digest_factory()
        except LLMProviderError as e:
            logger.error(f"LLM initialization failed: {e}")
            return f"Error: {e}"

        await ctx.info(f"Generating digest: {topic}")
        await progress.set_total(100)

        last = 0
        async with aclosing(machine.run(topic)) as events:
            async for event in events:
                last = await _report_progress(progress, event, last)
                if event.event == "error":
                    raise AssistantError(event.data["message"])

        if machine.digest is None:
            raise AssistantError("Digest generation ended without a digest")

        _save(machine.digest, prefix=f"digest_{topic[:20]}", metadata={"topic": topic, "mock_data": machine.used_mock_data})
        return machine.digest

    @server.tool()
    async def ask_travel_agent(question: str) -> str:
        """
        Ask the travel agent about weather and attractions.

        Args:
            question: e.g. "What should I visit in Lisbon tomorrow?"

        Returns:
            The agent's answer
        """
        response = await chat_service.answer(question)
        return response["answer"]

    @server.tool()
    async def plan_trip(
        destination: str,
        start_date: str,
        end_date: str,
        travelers: int = 1,
        budget_level: str = "moderate",
        preferences: list[str] | None = None,
        ctx: Context = CurrentContext(),
    ) -> str:
        """
        Plan a trip: look up attractions, weather and hotels, then write a day-by-day itinerary with a budget.

        Args:
            destination: City to visit
            start_date: First day, YYYY-MM-DD
            end_date: Last day, YYYY-MM-DD
            travelers: Number of travelers
            budget_level: budget, moderate or luxury
            preferences: Interests such as history, nature or food

        Returns:
            The plan as JSON
        """
        try:
            travel_request = parse_travel_request(
                {
                    "destination": destination,
                    "startDate": start_date,
                    "endDate": end_date,
                    "travelers": travelers,
                    "budgetLevel": budget_level,
                    "preferences": preferences or [],
                },
                settings.travel.max_days,
            )
        except ValueError as e:
            raise AssistantError(str(e)) from e

        try:
            planner = planner_factory()
        except LLMProviderError as e:
            logger.error(f"LLM initialization failed: {e}")
            return f"Error: {e}"

        await ctx.info(f"Planning trip to {travel_request.destination}")
        plan = await planner.plan(travel_request)
        return json.dumps(plan.to_dict(), ensure_ascii=False, indent=2)

    return server


def main() -> None:
    """Entry point for the HTTP server."""
    settings = get_settings()
    setup_structured_logging(settings.server.logging_level)
    logger.setLevel(getattr(logging, settings.server.logging_level.upper()))

    server_instance = serve(settings)
    logger.info(f"Starting assistant server (provider: {settings.llm.provider}, model: {settings.llm.model_name})")
    logger.info(f"HTTP server at http://{settings.server.host}:{settings.server.port}")
    server_instance.run(transport="streamable-http", host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
