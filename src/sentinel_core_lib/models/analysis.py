"""AI analysis data models.

Structured payloads exchanged with the enrichment oracle:
- AnalysisResult: initial analysis of a raw event log (AI_ANALYSIS content)
- IndicatorOfCompromise / PhasedIndicator: extracted IoCs
- ChecklistStep: suggested investigation step (without completion state)
- SplitChunk: one classified chunk of a split analyst note
- UserAgentSecurityAnalysis: risk assessment for one User-Agent string
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


# ============================================================
# Enums
# ============================================================

class KillChainPhase(str, Enum):
    """Cyber Kill Chain stage, plus the Uncategorized staging bucket"""

    RECONNAISSANCE = "Reconnaissance"
    WEAPONIZATION = "Weaponization"
    DELIVERY = "Delivery"
    EXPLOITATION = "Exploitation"
    INSTALLATION = "Installation"
    COMMAND_AND_CONTROL = "Command and Control"
    ACTIONS_ON_OBJECTIVES = "Actions on Objectives"
    UNCATEGORIZED = "Uncategorized"
    """Inbox for evidence not yet attributed to a stage. Never indexed."""

    @property
    def is_indexed(self) -> bool:
        """Check if this phase gets a CASE_INDEX summary"""
        return self is not KillChainPhase.UNCATEGORIZED


class Severity(str, Enum):
    """Estimated event severity"""

    INFORMATIONAL = "Informational"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class IocType(str, Enum):
    """Indicator of compromise kinds"""

    IP_ADDRESS = "IP Address"
    FILE_HASH = "File Hash"
    DOMAIN = "Domain"
    URL = "URL"
    EMAIL = "Email"
    OTHER = "Other"


# ============================================================
# Analysis Result
# ============================================================

class MitreAttack(BaseModel):
    """MITRE ATT&CK tactic or technique reference"""

    id: str = Field(description="ATT&CK identifier, e.g. TA0001 or T1566.001")
    name: str
    description: str


class IndicatorOfCompromise(BaseModel):
    """A single IoC value"""

    type: IocType
    value: str = Field(min_length=1)


class PhasedIndicator(IndicatorOfCompromise):
    """IoC attributed to the kill chain phase of the artifact it came from"""

    kill_chain_phase: KillChainPhase = KillChainPhase.UNCATEGORIZED


class ChecklistStep(BaseModel):
    """Recommended investigation step"""

    step: int
    action: str = Field(description="Short, actionable title for the step")
    details: str = Field(description="Detailed explanation of what to do")


class TimelineEvent(BaseModel):
    """Key event in the reconstructed timeline"""

    timestamp: str = Field(description="Original timestamp if available, otherwise an estimate")
    event: str


class AnalysisResult(BaseModel):
    """Structured analysis of a security event log"""

    summary: str = Field(description="Concise summary of what happened")
    estimated_severity: Severity
    attack_tactic: MitreAttack
    attack_technique: MitreAttack
    indicators_of_compromise: List[IndicatorOfCompromise] = Field(default_factory=list)
    investigation_checklist: List[ChecklistStep] = Field(default_factory=list)
    timeline_events: List[TimelineEvent] = Field(default_factory=list)


# ============================================================
# Split / User-Agent
# ============================================================

class SplitChunk(BaseModel):
    """One distinct finding carved out of a larger note"""

    phase: KillChainPhase
    title: str
    summary: str


class UserAgentSecurityAnalysis(BaseModel):
    """Security assessment of one User-Agent string"""

    user_agent: str
    summary: str
    risk_level: Severity
