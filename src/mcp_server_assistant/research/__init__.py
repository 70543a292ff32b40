"""Deep research: plan a topic into sub-tasks, search and summarize each, write a report."""

from .machine import ResearchMachine
from .models import ResearchOutcome, SourceItem, SubTask, TaskStatus
from .planner import TaskPlanner
from .runner import TaskRunner
from .search import HttpSearchAdapter, SearchAdapter
from .summarizer import TaskSummarizer
from .writer import ReportWriter

__all__ = [
    "HttpSearchAdapter",
    "ReportWriter",
    "ResearchMachine",
    "ResearchOutcome",
    "SearchAdapter",
    "SourceItem",
    "SubTask",
    "TaskPlanner",
    "TaskRunner",
    "TaskStatus",
    "TaskSummarizer",
]
