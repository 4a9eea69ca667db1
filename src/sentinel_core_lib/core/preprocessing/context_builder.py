"""Oracle Context Builder

Purpose: Turn case state into the text blocks handed to the enrichment oracle

Key Functions:
- stringify_artifact_content(): one artifact as readable text
- build_phase_context(): artifacts of a single kill chain phase
- build_case_context(): case header plus artifacts as JSON (global summary)
- build_ioc_context(): evidence text grouped by phase (IoC extraction)
- build_checklist_context(): case header plus pretty-printed artifacts
- serialize_case(): the whole case, for the case assistant chat
- concatenate_files(): uploaded files wrapped in boundary markers
- format_user_agent_batch(): UA strings with their parsed fields

Design Principles:
- Derived artifacts never feed themselves: callers filter GLOBAL_* out
  before building global contexts, and the IoC context also skips
  CASE_INDEX and TOOL_INFO
- No truncation; context grows with the case
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sentinel_core_lib.models import (
    AnalysisResult,
    Artifact,
    ArtifactType,
    Case,
    EvidenceFileContent,
    IocListContent,
    TextContent,
    ToolInfoContent,
    ToolOutputContent,
)

_IOC_EXCLUDED_TYPES = frozenset({
    ArtifactType.CASE_INDEX,
    ArtifactType.TOOL_INFO,
    ArtifactType.GLOBAL_SUMMARY,
    ArtifactType.GLOBAL_IOC_LIST,
})


def stringify_artifact_content(artifact: Artifact) -> str:
    """Render artifact content as plain text, by content variant"""
    content = artifact.content

    if isinstance(content, AnalysisResult):
        return f"AI Analysis Summary: {content.summary}"
    if isinstance(content, TextContent):
        return content.text
    if isinstance(content, ToolOutputContent):
        return (
            f"Tool: {content.tool_name}\n"
            f"Command: {content.command or 'N/A'}\n"
            f"Output:\n{content.output}"
        )
    if isinstance(content, EvidenceFileContent):
        return f"File: {content.file_name}\nContent:\n{content.content}"
    if isinstance(content, ToolInfoContent):
        return (
            f"Tool: {content.tool_name}\n"
            f"Version: {content.version or 'N/A'}\n"
            f"Configuration: {content.configuration or 'N/A'}"
        )
    if isinstance(content, IocListContent):
        return content.model_dump_json()

    raise TypeError(f"Unsupported artifact content: {type(content).__name__}")


def _artifacts_as_json(artifacts: Iterable[Artifact], indent: Optional[int] = None) -> str:
    return json.dumps([a.model_dump(mode="json") for a in artifacts], indent=indent)


def build_phase_context(artifacts: Sequence[Artifact]) -> str:
    """Title and JSON content of each artifact in one phase"""
    return "\n\n".join(
        f"Title: {a.title}\nContent: {a.content.model_dump_json()}"
        for a in artifacts
    )


def build_case_context(case: Case, artifacts: Sequence[Artifact]) -> str:
    """Case header followed by the given artifacts as a JSON array"""
    return (
        f"Case: {case.name}\n"
        f"Description: {case.description}\n"
        f"Artifacts:\n{_artifacts_as_json(artifacts)}"
    )


def build_ioc_context(artifacts: Sequence[Artifact]) -> str:
    """Evidence text for IoC extraction, each block tagged with its phase.

    Returns an empty string when no artifact carries extractable evidence.
    """
    blocks: List[str] = []
    for artifact in artifacts:
        if artifact.artifact_type in _IOC_EXCLUDED_TYPES:
            continue
        blocks.append(
            f"--- Artifact (Phase: {artifact.kill_chain_phase.value}) ---\n"
            f"{stringify_artifact_content(artifact)}"
        )
    return "\n\n".join(blocks)


def build_checklist_context(case: Case) -> str:
    """Context for next-step suggestions"""
    summary_parts = [
        f"Case Name: {case.name}",
        f"Description: {case.description}",
        "--- ARTIFACTS ---",
        _artifacts_as_json(case.artifacts, indent=2),
    ]
    return "\n".join(summary_parts)


def serialize_case(case: Case) -> str:
    """Entire case (artifacts, checklist, chat) as JSON"""
    return case.model_dump_json()


def concatenate_files(files: Iterable[Any]) -> str:
    """Join uploaded files, each wrapped in start/end markers.

    Args:
        files: Objects with ``file_name`` and ``content`` attributes
    """
    return "\n\n".join(
        f"--- START OF FILE: {f.file_name} ---\n{f.content}\n--- END OF FILE: {f.file_name} ---"
        for f in files
    )


def format_user_agent_batch(items: Iterable[Dict[str, Any]]) -> str:
    """One block per UA string with its parsed data as indented JSON.

    Args:
        items: Dicts with ``user_agent`` and ``parsed`` keys
    """
    return "\n---\n".join(
        f"User-Agent: \"{item['user_agent']}\"\n"
        f"Parsed Data: {json.dumps(item['parsed'], indent=2)}"
        for item in items
    )
