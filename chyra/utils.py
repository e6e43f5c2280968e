"""
FILE: chyra/utils.py
PURPOSE: AI helpers shared by CLI and REPL (task descriptions, project Q&A)
EXPORTS:
  - find_ai_command() -> Optional[List[str]]
  - run_ai_prompt(prompt, timeout) -> Optional[str]
  - generate_description(title) -> Optional[str]
  - build_oracle_prompt(project, tasks, question) -> str
  - ask_project_oracle(project, tasks, question) -> Optional[str]
DEPENDENCIES:
  - subprocess (for calling the completion CLI)
  - shutil, shlex, os (command lookup and parsing)
  - loguru (logging)
NOTES:
  - Completion command defaults to the local Claude CLI
    (`claude -p --model haiku`), override with CHYRA_AI_COMMAND
  - The prompt is piped on stdin
  - Returns None on any failure; callers decide how to report it
"""

import os
import shlex
import shutil
import subprocess
from typing import Iterable, List, Optional

from loguru import logger

from .core.models import Project, Task


DEFAULT_AI_COMMAND = "claude -p --model haiku"
AI_TIMEOUT_SECONDS = 30


def find_ai_command() -> Optional[List[str]]:
    """
    Resolve the completion command to an argv list.

    Returns:
        The command with its executable resolved on PATH, or None if the
        executable can't be found
    """
    parts = shlex.split(os.environ.get("CHYRA_AI_COMMAND", DEFAULT_AI_COMMAND))
    if not parts:
        return None
    executable = shutil.which(parts[0])
    if not executable:
        return None
    return [executable] + parts[1:]


def run_ai_prompt(prompt: str, timeout: int = AI_TIMEOUT_SECONDS) -> Optional[str]:
    """
    Send a prompt to the completion command and return its stripped output.

    Returns:
        Model output, or None if the command is missing, fails, times out
        or prints nothing
    """
    command = find_ai_command()
    if command is None:
        logger.warning("AI command not found (set CHYRA_AI_COMMAND)")
        return None

    try:
        result = subprocess.run(
            command,
            input=prompt,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("AI command timed out after {}s", timeout)
        return None
    except OSError as e:
        logger.warning("AI command failed to start: {}", e)
        return None

    if result.returncode != 0:
        logger.warning("AI command exited with {}: {}", result.returncode, result.stderr.strip())
        return None

    output = result.stdout.strip()
    return output or None


def generate_description(title: str) -> Optional[str]:
    """Draft a markdown description for a task title."""
    prompt = f"""You are a helpful assistant that generates detailed task descriptions for a project management tool.

Task Title: "{title}"

Generate a clear, concise, and professional task description in markdown format. Include:
1. A brief overview of what needs to be done
2. Key objectives or acceptance criteria (as a bullet list)
3. Any potential considerations or edge cases

Keep it under 200 words and use markdown formatting (headers, lists, bold, etc.)."""
    return run_ai_prompt(prompt)


def build_oracle_prompt(project: Project, tasks: Iterable[Task], question: str) -> str:
    """
    Build the project oracle prompt: project summary, task list, question.
    """
    tasks = list(tasks)
    lines = []
    for task in tasks:
        line = f"- {task.content} (Status: {task.status}, Priority: {task.priority}"
        if task.due_date:
            line += f", Due: {task.due_date}"
        lines.append(line + ")")
    task_context = "\n".join(lines) or "No tasks yet"

    return f"""You are the "Project Oracle" - an AI assistant that helps answer questions about a project's tasks and status.

Project: {project.name}
Project Description: {project.description or 'No description provided'}

Current Tasks ({len(tasks)} total):
{task_context}

User Question: "{question}"

Provide a helpful, concise answer based on the project's current state. If the question can't be answered with the available information, say so politely and suggest what information might be needed. Keep your response under 150 words."""


def ask_project_oracle(project: Project, tasks: Iterable[Task], question: str) -> Optional[str]:
    """Answer a free-form question about a project's tasks."""
    return run_ai_prompt(build_oracle_prompt(project, tasks, question))
