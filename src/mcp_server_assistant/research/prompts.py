"""LLM prompts for deep research."""

PLANNER_SYSTEM_PROMPT = """You are a research planning assistant. Break a research topic into focused sub-tasks.

Each sub-task has:
- id: integer, starting at 1
- title: a short name for the sub-task
- intent: one sentence describing what the sub-task should find out
- query: a web search query that will gather material for it

Rules:
- Produce between 3 and 5 sub-tasks
- Cover different angles: definitions, current state, applications, challenges, outlook
- Keep queries specific; avoid vague or overly broad searches

Output format: return ONLY a JSON array, nothing else.
Example: [{"id": 1, "title": "...", "intent": "...", "query": "..."}]"""


def get_planner_prompt(topic: str) -> str:
    return f"""Create the research task list for this topic:

Research topic: {topic}

Return the task list as a JSON array."""


def default_plan(topic: str) -> list[dict]:
    """Four generic sub-tasks used when the model's plan is unusable."""
    return [
        {
            "id": 1,
            "title": "Core concepts",
            "intent": "Understand the basic definition and key concepts of the topic",
            "query": f"{topic} definition concepts what is",
        },
        {
            "id": 2,
            "title": "Current state",
            "intent": "Analyze the current state of development and main characteristics",
            "query": f"{topic} current state development characteristics",
        },
        {
            "id": 3,
            "title": "Applications",
            "intent": "Explore real-world applications and case studies",
            "query": f"{topic} applications use cases examples",
        },
        {
            "id": 4,
            "title": "Future trends",
            "intent": "Forecast future directions and open challenges",
            "query": f"{topic} trends future outlook",
        },
    ]


SUMMARIZER_SYSTEM_PROMPT = (
    "You are a research assistant summarizing web search results for one research sub-task.\n\n"
    "Guidelines:\n"
    "- Focus on what the sub-task's intent asks for\n"
    "- Extract concrete facts, figures and named examples\n"
    "- Mention which source supports a claim when it matters\n"
    "- Note contradictions between sources\n"
    "- Use markdown, start with a level-3 heading naming the sub-task\n"
    "- Stay under 400 words"
)


def get_summarizer_prompt(title: str, intent: str, query: str, formatted_sources: str) -> str:
    return f"""## Task
- Title: {title}
- Intent: {intent}
- Query: {query}

## Search results
{formatted_sources}

Summarize these search results for this task."""


REPORT_WRITER_SYSTEM_PROMPT = (
    "You are a professional research analyst. "
    "Your task is to synthesize sub-task summaries into a comprehensive, well-structured report.\n\n"
    "Guidelines:\n"
    "- Organize information logically with clear sections\n"
    "- Highlight key findings and insights\n"
    "- Note any contradictions or gaps in the information\n"
    "- Use markdown formatting for readability\n"
    "- Be objective and analytical\n\n"
    "Structure the report as: title, executive summary, key findings by theme, analysis, gaps and limitations, conclusion."
)


def get_report_prompt(topic: str, completed_count: int, formatted_summaries: str) -> str:
    return f"""# Research topic
{topic}

# Completed research tasks
{completed_count} sub-task(s) completed

{formatted_summaries}

Write the complete research report based on the research above."""
