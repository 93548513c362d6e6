from __future__ import annotations

__all__ = ["ContentGenerator", "NewsletterWorkflow", "WorkflowResult", "build_prompt"]

from .generator import ContentGenerator, build_prompt
from .workflow import NewsletterWorkflow, WorkflowResult
