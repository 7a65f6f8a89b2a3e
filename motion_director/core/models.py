"""Type definitions for tool calls, validation reports and turn results"""

from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List, Union
from datetime import datetime


class ToolInvocation(BaseModel):
    """Tool call as emitted by the model (name and keys are untrusted)"""
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    call_id: Optional[str] = None


class ToolOutcome(BaseModel):
    """Result of one tool invocation, always echoed back to the model"""
    success: bool
    payload: Union[str, Dict[str, Any], None] = None
    error_message: Optional[str] = None
    error_category: Optional[str] = None
    findings: List[str] = Field(default_factory=list)
    target_path: Optional[str] = None

    def to_model_response(self) -> Dict[str, Any]:
        """Shape the outcome as a function response for the backend"""
        if self.success:
            return {"success": True, "result": self.payload}
        response = {"success": False, "error": self.error_message or "Unknown error"}
        if self.findings:
            response["findings"] = self.findings
        if self.payload:
            response["result"] = self.payload
        return response


class ValidationFinding(BaseModel):
    message: str


class ValidationReport(BaseModel):
    """Ordered findings for one candidate text; empty means it may be published"""
    path: str = ""
    findings: List[ValidationFinding] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings

    def add(self, message: str):
        self.findings.append(ValidationFinding(message=message))

    def messages(self, limit: Optional[int] = None) -> List[str]:
        items = [f.message for f in self.findings]
        return items[:limit] if limit else items


class PublicationDescriptor(BaseModel):
    """Registered entry composition waiting for activation"""
    exported_symbol: str
    import_reference: str
    total_duration: int
    composition_id: str = ""
    fps: int = 30
    width: int = 1920
    height: int = 1080

    def to_signal(self) -> Dict[str, Any]:
        return {
            "exportedSymbol": self.exported_symbol,
            "importReference": self.import_reference,
            "ready": True,
        }


class ModelTurn(BaseModel):
    """One backend response: free text, tool calls, or both"""
    text: str = ""
    tool_calls: List[ToolInvocation] = Field(default_factory=list)


class ProgressEvent(BaseModel):
    """Progress/log event emitted during a turn"""
    level: str  # info | success | warning | error
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class TurnResult(BaseModel):
    """Completion report for one user request"""
    success: bool
    incomplete: bool = False
    error: Optional[str] = None
    message: str = ""
    publication: Optional[PublicationDescriptor] = None
    tool_calls: int = 0
    nudges: int = 0
