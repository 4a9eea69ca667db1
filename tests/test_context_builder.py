import json

from sentinel_core_lib.core.preprocessing import (
    build_case_context,
    build_checklist_context,
    build_ioc_context,
    build_phase_context,
    concatenate_files,
    format_user_agent_batch,
    serialize_case,
    stringify_artifact_content,
)
from sentinel_core_lib.models import (
    Artifact,
    ArtifactType,
    Case,
    KillChainPhase,
    TextContent,
    ToolInfoContent,
    ToolOutputContent,
)
from sentinel_core_lib.workspace import EvidenceUpload

from conftest import make_analysis


def artifact(artifact_type, content, phase=KillChainPhase.UNCATEGORIZED, title="t"):
    return Artifact(artifact_type=artifact_type, title=title, content=content, kill_chain_phase=phase)


def test_stringify_by_content_variant():
    analysis = artifact(ArtifactType.AI_ANALYSIS, make_analysis())
    tool = artifact(ArtifactType.TOOL_OUTPUT, ToolOutputContent(tool_name="nmap", output="22/tcp open"))

    assert stringify_artifact_content(analysis).startswith("AI Analysis Summary: Credential phishing")
    assert stringify_artifact_content(tool) == "Tool: nmap\nCommand: N/A\nOutput:\n22/tcp open"


def test_ioc_context_skips_derived_and_tool_info():
    artifacts = [
        artifact(ArtifactType.ANALYST_NOTE, TextContent(text="beacon to 10.0.0.5"), KillChainPhase.COMMAND_AND_CONTROL),
        artifact(ArtifactType.CASE_INDEX, TextContent(text="- index text"), KillChainPhase.DELIVERY),
        artifact(ArtifactType.GLOBAL_SUMMARY, TextContent(text="summary text")),
        artifact(ArtifactType.TOOL_INFO, ToolInfoContent(tool_name="Splunk")),
    ]

    context = build_ioc_context(artifacts)

    assert context == "--- Artifact (Phase: Command and Control) ---\nbeacon to 10.0.0.5"


def test_case_context_lists_given_artifacts_as_json():
    note = artifact(ArtifactType.ANALYST_NOTE, TextContent(text="n"), title="Only note")
    case = Case(name="Ctx", description="Desc", artifacts=[note])

    context = build_case_context(case, [note])

    header, payload = context.split("Artifacts:\n", 1)
    assert header == "Case: Ctx\nDescription: Desc\n"
    assert json.loads(payload)[0]["title"] == "Only note"


def test_phase_and_checklist_contexts():
    note = artifact(ArtifactType.ANALYST_NOTE, TextContent(text="n"), title="Phase note")
    case = Case(name="Ctx", artifacts=[note])

    assert build_phase_context([note]) == 'Title: Phase note\nContent: {"text":"n"}'
    assert build_checklist_context(case).startswith("Case Name: Ctx\nDescription: \n--- ARTIFACTS ---\n[")


def test_serialize_case_round_trips():
    case = Case(name="Serialized", artifacts=[artifact(ArtifactType.AI_ANALYSIS, make_analysis())])

    assert Case.model_validate_json(serialize_case(case)) == case


def test_concatenate_files_wraps_each_file():
    text = concatenate_files([EvidenceUpload("a.log", "one"), EvidenceUpload("b.log", "two")])

    assert text == (
        "--- START OF FILE: a.log ---\none\n--- END OF FILE: a.log ---\n\n"
        "--- START OF FILE: b.log ---\ntwo\n--- END OF FILE: b.log ---"
    )


def test_user_agent_batch_format():
    text = format_user_agent_batch([
        {"user_agent": "a", "parsed": {"x": 1}},
        {"user_agent": "b", "parsed": {}},
    ])

    assert text == 'User-Agent: "a"\nParsed Data: {\n  "x": 1\n}\n---\nUser-Agent: "b"\nParsed Data: {}'
