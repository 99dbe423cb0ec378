from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["critical", "high", "medium", "low"]
DetailStatus = Literal["pass", "warning", "fail"]


class ScanDepth(str, Enum):
    BASIC = "basic"
    ADVANCED = "advanced"
    FULL = "full"


class _Model(BaseModel):
    # wire names are camelCase, python attributes snake_case
    model_config = ConfigDict(populate_by_name=True)


class Target(_Model):
    url: str
    hostname: str


# ---------- Check results (one variant per provider) ----------
class SSLResult(_Model):
    check: Literal["ssl"] = "ssl"
    grade: str = "N/A"
    has_warnings: bool = Field(False, alias="hasWarnings")
    is_exceptional: bool = Field(False, alias="isExceptional")
    progress: int = 0


class HeadersResult(_Model):
    check: Literal["headers"] = "headers"
    grade: str = "F"
    missing_headers: List[str] = Field(default_factory=list, alias="missingHeaders")
    present_headers: List[str] = Field(default_factory=list, alias="presentHeaders")


class VirusTotalResult(_Model):
    check: Literal["virusTotal"] = "virusTotal"
    clean: bool = True
    detections: int = 0
    engines: int = 0
    scan_date: Optional[str] = Field(None, alias="scanDate")
    permalink: Optional[str] = None
    message: Optional[str] = None


class SafeBrowsingResult(_Model):
    check: Literal["safeBrowsing"] = "safeBrowsing"
    safe: bool = True
    threats: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None


class ObservatoryResult(_Model):
    check: Literal["observatory"] = "observatory"
    grade: Optional[str] = None
    score: int = 0
    tests_passed: int = 0
    tests_failed: int = 0
    likelihood_indicator: Optional[str] = None


CheckResult = Annotated[
    Union[SSLResult, HeadersResult, VirusTotalResult, SafeBrowsingResult, ObservatoryResult],
    Field(discriminator="check"),
]
CheckResultMap = Dict[str, CheckResult]


# ---------- Findings ----------
class Vulnerability(_Model):
    severity: Severity
    title: str
    description: str
    category: str
    source: str


class Recommendation(_Model):
    priority: Severity
    title: str
    description: str
    steps: List[str] = Field(default_factory=list)
    link: Optional[str] = None


class Detail(_Model):
    category: str
    description: str
    status: DetailStatus
    source: str


class Findings(_Model):
    vulnerabilities: List[Vulnerability] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    details: List[Detail] = Field(default_factory=list)


# ---------- Requests / reports ----------
class ScanRequest(_Model):
    url: str
    scan_depth: str = Field("basic", alias="scanDepth")


class Report(_Model):
    url: str
    hostname: Optional[str] = None
    timestamp: str
    scan_depth: ScanDepth = Field(alias="scanDepth")
    overall_score: int = Field(ge=0, le=100, alias="overallScore")
    grade: str
    vulnerabilities: List[Vulnerability] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    details: List[Detail] = Field(default_factory=list)
    tests_performed: List[str] = Field(default_factory=list, alias="testsPerformed")
    scan_duration: str = Field(alias="scanDuration")
    checks: CheckResultMap = Field(default_factory=dict)
    fallback: bool = False
    error: Optional[str] = None
