"""
Tests for the AI helpers.

The completion command is never really run: find_ai_command and
subprocess.run are replaced with fakes.
"""

import subprocess
from types import SimpleNamespace

import pytest

from chyra import utils
from chyra.core import service
from chyra.core.exceptions import NotAuthorizedError
from chyra.core.models import Project, Task

from conftest import MEMBER, OUTSIDER


@pytest.fixture
def fake_ai(monkeypatch):
    """Record prompts and answer with a canned response."""
    calls = []
    response = SimpleNamespace(returncode=0, stdout="  An answer.  \n", stderr="")

    def fake_run(command, input=None, **kwargs):
        calls.append({"command": command, "input": input, "timeout": kwargs.get("timeout")})
        return response

    monkeypatch.setattr(utils, "find_ai_command", lambda: ["/usr/bin/fake-ai", "-p"])
    monkeypatch.setattr(utils.subprocess, "run", fake_run)
    return SimpleNamespace(calls=calls, response=response)


def test_find_ai_command_uses_env(monkeypatch):
    monkeypatch.setenv("CHYRA_AI_COMMAND", "my-llm --fast")
    monkeypatch.setattr(utils.shutil, "which", lambda name: f"/opt/bin/{name}")

    assert utils.find_ai_command() == ["/opt/bin/my-llm", "--fast"]


def test_find_ai_command_missing_executable(monkeypatch):
    monkeypatch.setattr(utils.shutil, "which", lambda name: None)
    assert utils.find_ai_command() is None


def test_run_ai_prompt_returns_stripped_output(fake_ai):
    assert utils.run_ai_prompt("hello") == "An answer."
    assert fake_ai.calls[0]["input"] == "hello"
    assert fake_ai.calls[0]["timeout"] == utils.AI_TIMEOUT_SECONDS


def test_run_ai_prompt_without_command(monkeypatch, log_messages):
    monkeypatch.setattr(utils, "find_ai_command", lambda: None)

    assert utils.run_ai_prompt("hello") is None
    assert any("not found" in m for m in log_messages)


def test_run_ai_prompt_nonzero_exit(fake_ai):
    fake_ai.response.returncode = 2
    fake_ai.response.stderr = "boom"
    assert utils.run_ai_prompt("hello") is None


def test_run_ai_prompt_empty_output(fake_ai):
    fake_ai.response.stdout = "   "
    assert utils.run_ai_prompt("hello") is None


def test_run_ai_prompt_timeout(monkeypatch):
    def slow_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(utils, "find_ai_command", lambda: ["fake-ai"])
    monkeypatch.setattr(utils.subprocess, "run", slow_run)

    assert utils.run_ai_prompt("hello", timeout=1) is None


def test_generate_description_prompt_mentions_title(fake_ai):
    assert utils.generate_description("Set up CI") == "An answer."
    assert 'Task Title: "Set up CI"' in fake_ai.calls[0]["input"]


def test_build_oracle_prompt():
    project = Project(id="p1", workspace_id="w1", name="Website", description=None)
    tasks = [
        Task(id="t1", project_id="p1", workspace_id="w1", content="Launch", status="TODO",
             priority="HIGH", due_date="2030-02-01"),
        Task(id="t2", project_id="p1", workspace_id="w1", content="Design", status="DONE"),
    ]

    prompt = utils.build_oracle_prompt(project, tasks, "What is left?")

    assert "Project: Website" in prompt
    assert "No description provided" in prompt
    assert "Current Tasks (2 total)" in prompt
    assert "- Launch (Status: TODO, Priority: HIGH, Due: 2030-02-01)" in prompt
    assert "- Design (Status: DONE, Priority: MEDIUM)" in prompt
    assert 'User Question: "What is left?"' in prompt


def test_build_oracle_prompt_without_tasks():
    project = Project(id="p1", workspace_id="w1", name="Empty", description="Nothing yet")
    prompt = utils.build_oracle_prompt(project, [], "Status?")
    assert "No tasks yet" in prompt
    assert "Project Description: Nothing yet" in prompt


def test_service_oracle_uses_project_tasks(project, fake_ai):
    service.create_task(MEMBER, project.id, "Write copy")

    answer = service.ask_project_oracle(MEMBER, project.id, "Anything urgent?")

    assert answer == "An answer."
    assert "- Write copy (Status: TODO" in fake_ai.calls[0]["input"]


def test_service_oracle_requires_membership(project, fake_ai):
    with pytest.raises(NotAuthorizedError):
        service.ask_project_oracle(OUTSIDER, project.id, "Anything urgent?")
    assert fake_ai.calls == []


def test_service_description_requires_membership(workspace, fake_ai):
    with pytest.raises(NotAuthorizedError):
        service.generate_task_description(OUTSIDER, workspace.id, "Set up CI")
    assert service.generate_task_description(MEMBER, workspace.id, "Set up CI") == "An answer."
