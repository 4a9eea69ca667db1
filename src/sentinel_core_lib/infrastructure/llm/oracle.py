"""
Enrichment Oracle - prompt in, structured result out.

Every AI enrichment used by the workspace goes through EnrichmentOracle:
initial event analysis, checklist suggestions, phase and case summaries,
note splitting, IoC extraction, the case assistant chat and User-Agent risk
assessment.

Structured calls send the JSON schema of the expected pydantic model to the
provider (JSON mode) and validate the answer against the same model. A reply
that does not validate raises OracleResponseError; provider/transport failures
surface as LLMProviderError (an OracleError).
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from sentinel_core_lib.core.preprocessing import (
    build_ioc_context,
    build_phase_context,
    format_user_agent_batch,
)
from sentinel_core_lib.exceptions import OracleResponseError
from sentinel_core_lib.models import (
    AnalysisResult,
    Artifact,
    ChecklistStep,
    PhasedIndicator,
    SplitChunk,
    UserAgentSecurityAnalysis,
)

from .providers import ProviderRegistry, get_registry

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

EMPTY_PHASE_SUMMARY = "No activity recorded for this phase yet."


# ============================================================
# Response envelopes
# ============================================================

class _ChecklistPayload(BaseModel):
    steps: List[ChecklistStep] = Field(description="A checklist of recommended next steps.")


class _SplitPayload(BaseModel):
    chunks: List[SplitChunk] = Field(description="An array of classified chunks from the original text.")


class _IocPayload(BaseModel):
    iocs: List[PhasedIndicator] = Field(
        description="A list of all indicators of compromise (IoCs) found in the text."
    )


class _UserAgentPayload(BaseModel):
    analyses: List[UserAgentSecurityAnalysis] = Field(
        description="An array of security analyses for the provided User-Agent strings."
    )


# ============================================================
# Prompts
# ============================================================

ANALYZE_EVENT_PROMPT = (
    "Analyze the following security event log and provide a structured analysis. "
    "The user is a junior security analyst, so be clear and concise. Event Log: \n\n{event_log}"
)

SUGGEST_STEPS_PROMPT = """Based on the following security investigation case context, suggest a short list of 3-5 high-level, actionable next steps for a security analyst.
IMPORTANT: The analyst's role is INVESTIGATION and ANALYSIS only. DO NOT suggest operational tasks like "contain the host," "block the IP," or "reset passwords."
Focus exclusively on analytical actions like "Correlate IP addresses with firewall logs," "Research the file hash on threat intel platforms," or "Analyze the PowerShell script for obfuscation techniques." Frame your suggestions as recommendations.

Case Context:
{context}"""

PHASE_SUMMARY_PROMPT = """Summarize the key findings from the following investigation artifacts for a specific phase of an attack. Provide a concise, bulleted list of the most important points.

Artifacts:
{context}"""

SPLIT_PROMPT = """You are an expert security analyst tasked with organizing raw investigation notes. Analyze the following text blob. Identify distinct topics or findings within it. For each distinct finding, create a new artifact with a clear title, a summary of the finding, and classify it into the most appropriate Cyber Kill Chain phase. If the text contains multiple distinct topics, split it into multiple artifacts. If all the text belongs to a single topic, create one artifact for it.

Raw Text:
{text}"""

CASE_SUMMARY_PROMPT = """You are an expert security analyst. Based on the entire case context provided, write a high-level executive summary of the investigation so far. Describe the likely attack narrative, what is known, and what is still unknown.

Case Context:
{context}"""

IOC_PROMPT = """You are an expert security analyst specializing in Indicator of Compromise (IoC) extraction. Read through all the following artifacts from an investigation. Extract every single IoC you can find, even if it's buried in unstructured text. For each IoC, classify its type and associate it with the Kill Chain Phase of the artifact where it was found.

Investigation Artifacts:
{context}"""

CHAT_PROMPT = """You are a world-class senior security analyst AI assistant, named Cyber Sentinel. The user is currently investigating a case. Below is the full context of the case, followed by the user's latest message. Your task is to analyze their message in the context of the case and provide a helpful, concise, and accurate response. You can answer questions, summarize artifacts, suggest investigation steps, and even formulate search queries for the tools mentioned in the 'Investigation Context' artifacts.

--- CASE CONTEXT ---
{context}
--- END CASE CONTEXT ---

User Message: "{message}\""""

USER_AGENT_PROMPT = """You are a security analyst. I have parsed several User-Agent strings and have some preliminary data, including some security flags. Please analyze each one and provide a concise security summary and risk level. Pay attention to outdated versions, anomalies, and any security flags that are true.

List of User-Agents and their parsed data:
{formatted}"""


class EnrichmentOracle:
    """AI enrichment calls over the provider registry"""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        model: Optional[str] = None,
        temperature: float = 0.4,
        max_tokens: int = 8192,
    ):
        self.registry = registry or get_registry()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    # ============================================================
    # Transport helpers
    # ============================================================

    async def _generate_text(self, prompt: str) -> str:
        response = await self.registry.route_request(
            prompt=prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.content

    async def _generate_json(self, prompt: str, payload_model: Type[PayloadT]) -> PayloadT:
        response = await self.registry.route_request(
            prompt=prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_schema=payload_model.model_json_schema(),
        )
        try:
            return payload_model.model_validate_json(response.content.strip())
        except ValidationError as e:
            logger.warning(
                f"Malformed {payload_model.__name__} from {response.provider}: {e.error_count()} error(s)"
            )
            raise OracleResponseError(
                f"Oracle returned malformed {payload_model.__name__}",
                context={"provider": response.provider, "errors": e.errors(include_url=False)},
            ) from e

    # ============================================================
    # Foreground analysis
    # ============================================================

    async def analyze_event(self, event_log: str) -> AnalysisResult:
        """Structured analysis of a raw security event log"""
        return await self._generate_json(
            ANALYZE_EVENT_PROMPT.format(event_log=event_log),
            AnalysisResult,
        )

    async def suggest_next_steps(self, context: str) -> List[ChecklistStep]:
        """3-5 analytical next steps for the case described by context"""
        payload = await self._generate_json(
            SUGGEST_STEPS_PROMPT.format(context=context),
            _ChecklistPayload,
        )
        return payload.steps

    async def split_and_classify(self, text: str) -> List[SplitChunk]:
        """Split a note into phase-classified findings"""
        payload = await self._generate_json(SPLIT_PROMPT.format(text=text), _SplitPayload)
        return payload.chunks

    async def chat(self, message: str, context: str) -> str:
        """Case assistant reply to message, given the serialized case"""
        return await self._generate_text(CHAT_PROMPT.format(context=context, message=message))

    # ============================================================
    # Derived index enrichment
    # ============================================================

    async def summarize_phase(self, artifacts: Sequence[Artifact]) -> str:
        """Bulleted findings for the artifacts of one kill chain phase.

        An empty phase is answered locally without calling a provider.
        """
        if not artifacts:
            return EMPTY_PHASE_SUMMARY
        return await self._generate_text(
            PHASE_SUMMARY_PROMPT.format(context=build_phase_context(artifacts))
        )

    async def summarize_case(self, context: str) -> str:
        """Executive summary of the case described by context"""
        return await self._generate_text(CASE_SUMMARY_PROMPT.format(context=context))

    async def extract_iocs(self, artifacts: Sequence[Artifact]) -> List[PhasedIndicator]:
        """Every IoC in the evidence, tagged with the phase it was found in"""
        context = build_ioc_context(artifacts)
        if not context.strip():
            return []
        payload = await self._generate_json(IOC_PROMPT.format(context=context), _IocPayload)
        return payload.iocs

    # ============================================================
    # Side tools
    # ============================================================

    async def analyze_user_agents(self, items: Sequence[Dict[str, Any]]) -> List[UserAgentSecurityAnalysis]:
        """Risk assessment for a batch of parsed User-Agent strings.

        Args:
            items: Dicts with ``user_agent`` and ``parsed`` keys
        """
        if not items:
            return []
        payload = await self._generate_json(
            USER_AGENT_PROMPT.format(formatted=format_user_agent_batch(items)),
            _UserAgentPayload,
        )
        return payload.analyses
