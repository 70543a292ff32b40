"""Tests for the HTTP routes and MCP tools using Starlette TestClient and the FastMCP client."""

import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError
from starlette.testclient import TestClient

from mcp_server_assistant.chat import ChatService, load_faq
from mcp_server_assistant.config import AppSettings
from mcp_server_assistant.exceptions import CompletionError, LLMProviderError
from mcp_server_assistant.news import DigestMachine, DigestWriter
from mcp_server_assistant.research import ReportWriter, ResearchMachine, TaskPlanner, TaskRunner, TaskSummarizer
from mcp_server_assistant.research.models import SourceItem
from mcp_server_assistant.research.prompts import PLANNER_SYSTEM_PROMPT, REPORT_WRITER_SYSTEM_PROMPT
from mcp_server_assistant.server import serve
from mcp_server_assistant.travel import TravelPlanner

PLAN = json.dumps([{"id": i, "title": f"T{i}", "intent": "i", "query": f"q{i}"} for i in range(1, 4)])


class FakeSearch:
    async def search(self, query, backend):
        return [SourceItem(title=query, url=f"https://example.com/{query}", snippet="s")]


class FakeTravelLookups:
    async def search_attractions(self, city, preferences, limit):
        return [{"name": "Castle", "description": "hilltop castle", "url": "https://example.com/castle"}]

    async def daily_forecast(self, city):
        return []

    async def search_hotels(self, city, budget_level, limit):
        return []


class FakeNews:
    async def for_user_topic(self, topic):
        return f"## Search: {topic}\n\n1. [Item](https://x)"


def research_responder(prompt, system_prompt):
    if system_prompt == PLANNER_SYSTEM_PROMPT:
        return PLAN
    if system_prompt == REPORT_WRITER_SYSTEM_PROMPT:
        return "# Report"
    return "summary"


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("ASSISTANT_SERVER_RESULTS_DIR", raising=False)
    return AppSettings()


@pytest.fixture
def app(settings, scripted_client):
    def research_factory():
        client = scripted_client(research_responder)
        return ResearchMachine(TaskPlanner(client), TaskRunner(FakeSearch(), TaskSummarizer(client)), ReportWriter(client))

    def digest_factory():
        return DigestMachine(FakeNews(), DigestWriter(scripted_client(["# Daily Digest"])))

    def planner_factory():
        lookups = FakeTravelLookups()
        return TravelPlanner(scripted_client([CompletionError("model offline")]), lookups, lookups, lookups)

    return serve(
        settings,
        research_factory=research_factory,
        digest_factory=digest_factory,
        chat_service=ChatService(load_faq()),
        planner_factory=planner_factory,
    )


@pytest.fixture
def client(app):
    return TestClient(app.http_app())


def sse_events(response):
    assert response.headers["content-type"].startswith("text/event-stream")
    events = []
    for chunk in response.text.split("\n\n"):
        if chunk.strip():
            assert chunk.startswith("data: ")
            events.append(json.loads(chunk[len("data: ") :]))
    return events


class TestResearchStream:
    def test_streams_events(self, client):
        response = client.post("/api/research/stream", json={"topic": "AI", "searchBackend": "serper"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-cache, no-transform"
        assert response.headers["x-accel-buffering"] == "no"
        events = sse_events(response)
        assert events[0] == {"event": "start", "data": {"topic": "AI", "searchBackend": "serper"}}
        assert events[-1] == {"event": "done", "data": {"topic": "AI", "tasksCompleted": 3, "totalTasks": 3}}
        assert {"event": "report", "data": "# Report"} in events

    def test_unknown_backend_uses_default(self, client):
        events = sse_events(client.post("/api/research/stream", json={"topic": "AI", "searchBackend": "altavista"}))
        assert events[0]["data"]["searchBackend"] == "tavily"

    def test_get_not_allowed(self, client):
        assert client.get("/api/research/stream").status_code == 405

    @pytest.mark.parametrize("body", [{}, {"topic": ""}, {"topic": "   "}, {"topic": 5}])
    def test_missing_topic(self, client, body):
        response = client.post("/api/research/stream", json=body)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_invalid_json(self, client):
        response = client.post("/api/research/stream", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_provider_failure_streams_single_error(self, settings):
        def failing_factory():
            raise LLMProviderError("API key missing")

        client = TestClient(serve(settings, research_factory=failing_factory, chat_service=ChatService(load_faq())).http_app())
        events = sse_events(client.post("/api/research/stream", json={"topic": "AI"}))

        assert events == [{"event": "error", "data": {"message": "API key missing"}}]


class TestNewsDigest:
    def test_streams_digest(self, client):
        events = sse_events(client.post("/api/news/digest", json={"topic": "technology"}))

        assert [e["event"] for e in events] == ["start", "progress", "progress", "progress", "progress", "progress", "digest", "done"]
        assert events[-2]["data"] == "# Daily Digest"

    def test_get_not_allowed(self, client):
        assert client.get("/api/news/digest").status_code == 405

    def test_missing_topic(self, client):
        assert client.post("/api/news/digest", json={"topic": ""}).status_code == 400


class TestChat:
    def test_faq_answer(self, client):
        response = client.post("/api/chat", json={"question": "Can you check the weather?", "model": "faq-matcher"})

        assert response.status_code == 200
        data = response.json()
        assert data["model"] == "faq-matcher"
        assert data["question"] == "Can you check the weather?"
        assert data["answer"].startswith("Yes.")

    def test_get_not_allowed(self, client):
        assert client.get("/api/chat").status_code == 405

    def test_missing_question(self, client):
        assert client.post("/api/chat", json={"model": "faq-matcher"}).status_code == 400

    def test_non_object_body(self, client):
        assert client.post("/api/chat", json=["question"]).status_code == 400


TRIP = {"destination": "Lisbon", "startDate": "2026-10-20", "endDate": "2026-10-21", "budgetLevel": "budget", "travelers": 2, "preferences": ["history"]}


class TestTravelPlan:
    def test_plans_trip(self, client):
        response = client.post("/api/travel/plan", json=TRIP)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert isinstance(data["duration"], int)
        plan = data["plan"]
        assert plan["destination"] == "Lisbon"
        assert [day["date"] for day in plan["itinerary"]] == ["2026-10-20", "2026-10-21"]
        assert plan["itinerary"][0]["items"][0]["name"] == "Castle"
        assert plan["budget"]["transport"] == 400

    def test_get_not_allowed(self, client):
        response = client.get("/api/travel/plan")
        assert response.status_code == 405
        assert response.json()["success"] is False

    @pytest.mark.parametrize("changes", [{"startDate": "2026-10-22"}, {"endDate": "tomorrow"}, {"travelers": "two"}])
    def test_invalid_request(self, client, changes):
        response = client.post("/api/travel/plan", json={**TRIP, **changes})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request parameters")

    def test_planner_failure_is_500(self, settings):
        def planner_factory():
            raise LLMProviderError("API key missing")

        client = TestClient(serve(settings, chat_service=ChatService(load_faq()), planner_factory=planner_factory).http_app())
        response = client.post("/api/travel/plan", json=TRIP)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Trip planning failed: API key missing", "duration": response.json()["duration"]}


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0
        assert data["memory_mb"] > 0


class TestMcpTools:
    @pytest.mark.anyio
    async def test_list_tools(self, app):
        async with Client(app) as mcp:
            tools = await mcp.list_tools()

        names = {tool.name for tool in tools}
        assert names == {"run_deep_research", "generate_news_digest", "ask_travel_agent", "plan_trip"}
        research = next(tool for tool in tools if tool.name == "run_deep_research")
        assert "topic" in research.inputSchema["properties"]
        assert "ctx" not in research.inputSchema["properties"]

    @pytest.mark.anyio
    async def test_run_deep_research(self, app):
        async with Client(app) as mcp:
            result = await mcp.call_tool("run_deep_research", {"topic": "AI"})
        assert result.content[0].text == "# Report"

    @pytest.mark.anyio
    async def test_generate_news_digest(self, app):
        async with Client(app) as mcp:
            result = await mcp.call_tool("generate_news_digest", {"topic": "technology"})
        assert result.content[0].text == "# Daily Digest"

    @pytest.mark.anyio
    async def test_research_error_becomes_tool_error(self, settings, scripted_client):
        def research_factory():
            client = scripted_client([CompletionError("model offline")])
            return ResearchMachine(TaskPlanner(client), TaskRunner(FakeSearch(), TaskSummarizer(client)), ReportWriter(client))

        app = serve(settings, research_factory=research_factory, chat_service=ChatService(load_faq()))
        async with Client(app) as mcp:
            with pytest.raises(ToolError, match="model offline"):
                await mcp.call_tool("run_deep_research", {"topic": "AI"})

    @pytest.mark.anyio
    async def test_ask_travel_agent_without_agent_uses_faq(self, app):
        async with Client(app) as mcp:
            result = await mcp.call_tool("ask_travel_agent", {"question": "Can you recommend attractions?"})
        assert result.content[0].text.startswith("Yes.")

    @pytest.mark.anyio
    async def test_plan_trip(self, app):
        async with Client(app) as mcp:
            result = await mcp.call_tool(
                "plan_trip", {"destination": "Lisbon", "start_date": "2026-10-20", "end_date": "2026-10-20", "travelers": 2}
            )
        plan = json.loads(result.content[0].text)
        assert plan["destination"] == "Lisbon"
        assert plan["itinerary"][0]["items"][0]["name"] == "Castle"

    @pytest.mark.anyio
    async def test_plan_trip_rejects_bad_dates(self, app):
        async with Client(app) as mcp:
            with pytest.raises(ToolError, match="Invalid request parameters"):
                await mcp.call_tool("plan_trip", {"destination": "Lisbon", "start_date": "2026-10-21", "end_date": "2026-10-20"})
