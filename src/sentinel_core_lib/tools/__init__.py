"""Analyst side tools: batch IoC reputation scanning and User-Agent analysis"""

from .ioc_scanner import (
    CSV_HEADERS,
    IocBatchScanner,
    ScanProgress,
    csv_filename,
    export_csv,
    parse_input,
)
from .user_agent_analyzer import (
    PARSE_ERROR_MESSAGE,
    SECURITY_ERROR_MESSAGE,
    UserAgentAnalyzer,
    parse_user_agents,
)

__all__ = [
    "CSV_HEADERS",
    "IocBatchScanner",
    "ScanProgress",
    "csv_filename",
    "export_csv",
    "parse_input",
    "PARSE_ERROR_MESSAGE",
    "SECURITY_ERROR_MESSAGE",
    "UserAgentAnalyzer",
    "parse_user_agents",
]
