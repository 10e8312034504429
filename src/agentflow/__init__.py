"""agentflow - multi-agent workflow orchestration client."""

__version__ = "0.1.0"
