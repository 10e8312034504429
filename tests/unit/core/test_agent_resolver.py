"""
Unit tests for WorkflowAgentResolver.

Tests verify:
- Declared agents keep declared order, observed-only agents follow
- Active agent precedence (open prompt > sticky selection > current agent)
- Reserved senders are ignored, activity keeps the latest timestamp
- Choice points (multi-agent steps) get their dedicated presentation
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from agentflow.core.domain.agent_resolver import (
    ADDITIONAL_STATUS,
    CHOICE_POINT_ICON,
    CHOICE_POINT_ROLE,
    WorkflowAgentResolver,
)
from agentflow.core.domain.models import ElicitationPrompt, WorkflowMessage, WorkflowStep

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def resolver(catalog):
    return WorkflowAgentResolver(catalog)


def prompt_for(catalog, registry, agent_id, command_id):
    return ElicitationPrompt(
        agent=catalog.get(agent_id),
        command=registry.get(command_id),
        message="Need input",
        conversation_id="conv_1",
    )


def test_declared_order_then_observed_agents(resolver):
    messages = [
        WorkflowMessage(sender="Maria", agent_id="qa", content="Tests ready", timestamp=T0),
        WorkflowMessage(sender="John", content="PRD drafted", timestamp=T0),
    ]

    views = resolver.resolve(messages, workflow_agents=["pm", "architect", "dev"])

    assert [v.id for v in views] == ["pm", "architect", "dev", "qa"]
    assert [v.order for v in views[:3]] == [1, 2, 3]
    qa = views[-1]
    assert qa.order > 3
    assert math.isinf(qa.order)
    assert qa.workflow_status == ADDITIONAL_STATUS
    assert not qa.is_declared
    assert views[0].last_activity == T0


def test_prompt_agent_is_active_and_current_agent_is_recent(resolver, catalog, registry):
    prompt = prompt_for(catalog, registry, "architect", "create-architecture")

    views = resolver.resolve(
        [],
        elicitation_prompt=prompt,
        workflow_agents=["pm", "architect", "dev"],
        current_agent="dev",
    )
    by_id = {v.id: v for v in views}

    assert by_id["architect"].is_active
    assert not by_id["architect"].is_recent
    assert by_id["dev"].is_current
    assert by_id["dev"].is_recent
    assert not by_id["dev"].is_active
    assert not by_id["pm"].is_active


def test_current_agent_only_fills_empty_active_slot(resolver):
    first = resolver.resolve([], workflow_agents=["pm", "dev"], current_agent="pm")
    second = resolver.resolve([], workflow_agents=["pm", "dev"], current_agent="dev")

    assert [v.id for v in first if v.is_active] == ["pm"]
    assert [v.id for v in second if v.is_active] == ["pm"]
    assert {v.id: v.is_recent for v in second} == {"pm": False, "dev": True}


def test_prompt_overrides_sticky_active_agent(resolver, catalog, registry):
    resolver.resolve([], workflow_agents=["pm", "architect"], current_agent="pm")

    views = resolver.resolve(
        [],
        elicitation_prompt=prompt_for(catalog, registry, "architect", "create-architecture"),
        workflow_agents=["pm", "architect"],
    )

    assert [v.id for v in views if v.is_active] == ["architect"]


def test_reserved_senders_are_ignored(resolver):
    messages = [
        WorkflowMessage(sender="User", content="hi", timestamp=T0),
        WorkflowMessage(sender="System", content="started", timestamp=T0),
        WorkflowMessage(sender="BMAD System", content="noise", timestamp=T0),
        WorkflowMessage(sender="bmad-system", content="noise", timestamp=T0),
    ]

    views = resolver.resolve(messages)

    assert views == []


def test_activity_keeps_latest_timestamp_in_first_seen_order(resolver):
    later = T0 + timedelta(minutes=5)
    messages = [
        WorkflowMessage(agent_id="dev", timestamp=later),
        WorkflowMessage(agent_id="qa", timestamp=T0),
        WorkflowMessage(agent_id="dev", timestamp=T0),
    ]

    views = resolver.resolve(messages)

    assert [v.id for v in views] == ["dev", "qa"]
    assert views[0].last_activity == later


def test_sender_names_are_attributed_to_agent_ids(resolver):
    views = resolver.resolve([WorkflowMessage(sender="Sarah", timestamp=T0)])

    assert views[0].id == "architect"
    assert views[0].role == "Solution Architect"


def test_duplicate_declared_agents_first_wins(resolver):
    views = resolver.resolve([], workflow_agents=["pm", "architect", "PM"])

    assert [(v.id, v.order) for v in views] == [("pm", 1), ("architect", 2)]


def test_workflow_step_status_and_name(resolver):
    views = resolver.resolve(
        [],
        workflow_agents=[
            WorkflowStep(agent_id="pm", status="completed"),
            WorkflowStep(agent_id="architect", name="Lead Architect"),
        ],
    )

    assert views[0].workflow_status == "completed"
    assert views[1].workflow_status == "pending"
    assert views[1].name == "Lead Architect"


def test_choice_points(resolver):
    views = resolver.resolve([], workflow_agents=["pm/architect", "various"])

    multi, various = views
    assert multi.is_choice_point
    assert multi.name == "pm or architect"
    assert multi.icon == CHOICE_POINT_ICON
    assert various.is_choice_point
    assert various.role == CHOICE_POINT_ROLE


def test_select_agent_sets_focus(resolver):
    resolver.select_agent("Sarah")
    views = resolver.resolve([], workflow_agents=["pm", "architect"])

    assert [v.id for v in views if v.is_active] == ["architect"]

    resolver.select_agent(None)
    assert resolver.active_agent_id is None
