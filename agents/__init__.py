"""Agents package: interview, writing and outline agents."""

from agents.base_agent import BaseAgent
from agents.interview_agent import InterviewAgent, InterviewOutcome
from agents.outline_agent import OutlineExpander
from agents.writer_agent import WriterAgent

__all__ = [
    "BaseAgent",
    "InterviewAgent",
    "InterviewOutcome",
    "OutlineExpander",
    "WriterAgent",
]
