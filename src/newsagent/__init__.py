"""Universal news agent: discover and extract articles from a publisher site."""

from __future__ import annotations

__all__ = [
    "AgentConfig",
    "AgentResult",
    "NormalizedArticle",
    "UniversalNewsAgent",
    "load_config",
    "run_agent",
]

from newsagent.agent import UniversalNewsAgent, run_agent
from newsagent.config import AgentConfig, load_config
from newsagent.models import AgentResult, NormalizedArticle
