from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional, Dict, Any, Literal

LayerName = Literal["existence", "awareness", "consideration", "intent", "pay_intention"]


class SynthesisRequest(BaseModel):
    """Accepts both the snake_case field names and the camelCase keys sent by the web client"""
    model_config = ConfigDict(populate_by_name=True)

    idea_id: Optional[str] = Field(None, alias="ideaId")
    idea_version_number: Optional[int] = Field(None, alias="ideaVersionNumber")
    title: Optional[str] = None
    decision_making: Optional[str] = None
    content: Optional[List[Dict[str, Any]]] = None
    decision_evidence: Optional[Dict[str, Any]] = Field(None, alias="decisionEvidence")
    market_validation: Optional[Dict[str, Any]] = Field(None, alias="marketValidation")
    language: Optional[str] = "en"


class SynthesisResult(BaseModel):
    decision_framing: str = ""
    signal_summary: str = ""
    what_signals_say: str = ""
    key_risks_and_assumptions: str = ""
    recommendation: str = ""
    founder_safe_summary: str = ""


class LabeledBlock(BaseModel):
    label: str = ""
    content: str


class SynthesisLayerItem(BaseModel):
    layer: LayerName
    description: str = ""
    evidence_summary: str = ""
    next_test: str = ""


class ParsedSynthesis(BaseModel):
    decision_framing: List[LabeledBlock] = []
    signal_summary: List[LabeledBlock] = []
    what_signals_say: List[str] = []
    key_risks: List[List[LabeledBlock]] = []
    layers: List[SynthesisLayerItem] = []
    recommendation: List[LabeledBlock] = []
    founder_safe_summary: List[LabeledBlock] = []


class SynthesisResponse(BaseModel):
    synthesis: SynthesisResult
    timestamp: datetime
    parsed: Optional[ParsedSynthesis] = None
