"""CLI interface for the assistant pipelines."""

import asyncio

import typer

from .config import get_settings
from .exceptions import LLMProviderError
from .observability import setup_structured_logging

app = typer.Typer(help="Research, news digest, travel agent and trip planner CLI")


@app.callback()
def _setup(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline activity to stderr")) -> None:
    setup_structured_logging("INFO" if verbose else "WARNING", json_output=False)


def _print_progress(data: dict) -> None:
    typer.echo(f"[{data['percentage']:>3}%] {data.get('task') or data['stage']}", err=True)


@app.command()
def research(
    topic: str = typer.Argument(..., help="Topic to research"),
    backend: str = typer.Option(None, "--backend", "-b", help="Search backend: tavily, duckduckgo, serper or bing"),
    save: bool = typer.Option(False, "--save", "-s", help="Save the report to the results directory"),
) -> None:
    """Run deep research on a topic and print the report."""
    from .pipelines import build_research_machine, resolve_backend
    from .utils import save_execution_result

    settings = get_settings()

    async def _research() -> str:
        try:
            machine = build_research_machine(settings)
        except LLMProviderError as e:
            return f"Error: {e}"

        chosen = resolve_backend(settings, backend)
        async for event in machine.run(topic, chosen):
            if event.event == "progress":
                _print_progress(event.data)
            elif event.event == "task_complete":
                typer.echo(f"Task {event.data['taskId']}: {event.data['status']}", err=True)
            elif event.event == "error":
                return f"Error: {event.data['message']}"

        report = machine.outcome.report if machine.outcome else ""
        if save and report:
            path = save_execution_result(report, prefix=f"research_{topic[:20]}", metadata={"topic": topic, "search_backend": chosen})
            typer.echo(f"Saved to {path}", err=True)
        return report

    typer.echo(asyncio.run(_research()))


@app.command()
def digest(
    topic: str = typer.Argument(..., help="News topic"),
    save: bool = typer.Option(False, "--save", "-s", help="Save the digest to the results directory"),
) -> None:
    """Generate a daily news digest for a topic."""
    from .pipelines import build_digest_machine
    from .utils import save_execution_result

    settings = get_settings()

    async def _digest() -> str:
        try:
            machine = build_digest_machine(settings)
        except LLMProviderError as e:
            return f"Error: {e}"

        async for event in machine.run(topic):
            if event.event == "progress":
                _print_progress(event.data)
            elif event.event == "error":
                return f"Error: {event.data['message']}"

        text = machine.digest or ""
        if save and text:
            path = save_execution_result(text, prefix=f"digest_{topic[:20]}", metadata={"topic": topic})
            typer.echo(f"Saved to {path}", err=True)
        return text

    typer.echo(asyncio.run(_digest()))


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the travel agent"),
    show_steps: bool = typer.Option(False, "--steps", help="Print the agent's reasoning steps"),
) -> None:
    """Ask the travel agent a question.

    Agent failures fall back to the bundled FAQ, as the chat endpoint does.
    """
    from .chat import ChatService, load_faq
    from .pipelines import build_travel_agent

    settings = get_settings()
    service = ChatService(load_faq(), agent_factory=lambda: build_travel_agent(settings))
    response = asyncio.run(service.answer(question))

    if show_steps:
        for number, step in enumerate(response.get("steps", []), start=1):
            typer.echo(f"{number}. Thought: {step['thought']}\n   Action: {step['action']}", err=True)
            if step.get("observation"):
                typer.echo(f"   Observation: {step['observation']}", err=True)
    typer.echo(response["answer"])


@app.command()
def plan(
    destination: str = typer.Argument(..., help="City to visit"),
    start: str = typer.Option(..., "--start", help="First day, YYYY-MM-DD"),
    end: str = typer.Option(..., "--end", help="Last day, YYYY-MM-DD"),
    travelers: int = typer.Option(1, "--travelers", "-t"),
    budget: str = typer.Option("moderate", "--budget", "-b", help="budget, moderate or luxury"),
    preferences: list[str] = typer.Option([], "--pref", "-p", help="Interest such as history or food; repeatable"),
) -> None:
    """Plan a trip and print it as JSON."""
    import json

    from .pipelines import build_travel_planner
    from .travel import parse_travel_request

    settings = get_settings()
    body = {
        "destination": destination,
        "startDate": start,
        "endDate": end,
        "travelers": travelers,
        "budgetLevel": budget,
        "preferences": preferences,
    }
    try:
        travel_request = parse_travel_request(body, settings.travel.max_days)
        planner = build_travel_planner(settings)
    except (ValueError, LLMProviderError) as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1) from e

    result = asyncio.run(planner.plan(travel_request))
    typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


@app.command()
def config(
    save: bool = typer.Option(False, "--save", "-s", help="Write the current settings, without secrets, to the config file"),
) -> None:
    """Show current configuration."""
    settings = get_settings()
    typer.echo(f"Provider: {settings.llm.provider}")
    typer.echo(f"Model: {settings.llm.model_name}")
    typer.echo(f"Base URL: {settings.llm.base_url or '(default)'}")
    typer.echo(f"Search backend: {settings.search.default_backend}")
    typer.echo(f"Agent parser: {settings.agent.parser}")
    typer.echo(f"Max iterations: {settings.agent.max_iterations}")
    typer.echo(f"Research concurrency: {settings.research.max_concurrency}")
    typer.echo(f"Results dir: {settings.get_results_dir()}")
    if save:
        typer.echo(f"Saved to {settings.save()}")


@app.command()
def server() -> None:
    """Start the HTTP/MCP server."""
    from .server import main

    main()


if __name__ == "__main__":
    app()
