"""Oracle Context Package

Turns case state into LLM-digestible context blocks.
"""

from .context_builder import (
    build_case_context,
    build_checklist_context,
    build_ioc_context,
    build_phase_context,
    concatenate_files,
    format_user_agent_batch,
    serialize_case,
    stringify_artifact_content,
)

__all__ = [
    "build_case_context",
    "build_checklist_context",
    "build_ioc_context",
    "build_phase_context",
    "concatenate_files",
    "format_user_agent_batch",
    "serialize_case",
    "stringify_artifact_content",
]
