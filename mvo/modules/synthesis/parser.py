"""Split synthesis text into labeled blocks for card rendering.

The model writes loosely structured markdown such as ``**Risk:** ...`` or
``Layer: existence``. These helpers are best effort: they split on the
markers the prompt asks for, fall back to looser splits when the strict one
finds a single segment, and drop segments that do not look like the section
they were filed under (the model sometimes mixes risks and layers).
"""
import re
from typing import List

from mvo.modules.synthesis.schemas import (
    LabeledBlock, ParsedSynthesis, SynthesisLayerItem, SynthesisResult
)

LAYER_ORDER = ["existence", "awareness", "consideration", "intent", "pay_intention"]
LAYER_NAMES = "|".join(LAYER_ORDER)

_LABEL = r"(?:\*\*[^*]+?\*\*:?|[A-Za-z][^:\n]{0,80}:)"
_LABELED_BLOCK_RE = re.compile(
    rf"(?:^|\n)\s*({_LABEL})\s*\n?([\s\S]*?)(?=(?:\n\s*{_LABEL}\s*)|$)",
    re.IGNORECASE | re.MULTILINE,
)
_LAYER_LOOKAHEAD_RE = re.compile(
    rf"(?=\*\*Layer\*\*:?\s*|Layer:\s*(?:{LAYER_NAMES})\b\.?)",
    re.IGNORECASE | re.MULTILINE,
)
_BOLD_LAYER_RE = re.compile(r"\*\*Layer\*\*:?", re.IGNORECASE)
_LAYER_START_RE = re.compile(rf"\*\*Layer\*\*:?|Layer:\s*(?:{LAYER_NAMES})\b", re.IGNORECASE)
_LAYER_PREFIX_RE = re.compile(rf"^(?:\*\*Layer\*\*:?|Layer:\s*(?:{LAYER_NAMES})\b\.?)\s*", re.IGNORECASE)
_LAYER_AT_START_RE = re.compile(rf"^\s*\*\*Layer\*\*:?|^\s*Layer:\s*(?:{LAYER_NAMES})", re.IGNORECASE)
_LAYER_ON_NEW_LINE_RE = re.compile(rf"\n\s*\*\*Layer\*\*:?|\n\s*Layer:\s*(?:{LAYER_NAMES})", re.IGNORECASE)
_RISK_START_RE = re.compile(r"\*\*Risk\*\*:?|Risk:\s*", re.IGNORECASE)
_RISK_AT_START_RE = re.compile(r"^\s*\*\*Risk\*\*:?|^\s*Risk:\s*", re.IGNORECASE)
_RISK_ON_NEW_LINE_RE = re.compile(r"\n\s*\*\*Risk\*\*:?|\n\s*Risk:\s*", re.IGNORECASE)
_RISK_LOOKAHEAD_RE = re.compile(r"(?=\*\*Risk\*\*:?|Risk:\s*)", re.IGNORECASE | re.MULTILINE)
_RISK_LABEL_RE = re.compile(r"^\s*(\*\*Risk\*\*:?|Risk:)", re.IGNORECASE)
_RISK_KEYWORDS = ("why it matters", "evidence for", "evidence against", "how to reduce")


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").strip()


def _non_empty(parts: List[str]) -> List[str]:
    return [p.strip() for p in parts if p and p.strip()]


def clean_block_content(content: str) -> str:
    """Drop an orphan ``**`` or ``*`` left at either edge by a naive split"""
    if not content or not content.strip():
        return content or ""
    s = content.strip()
    s = re.sub(r"^\s*\*\*?\s*", "", s)
    s = re.sub(r"\s*\*\*?\s*$", "", s)
    return s.strip()


def parse_labeled_blocks(text: str) -> List[LabeledBlock]:
    """Split on ``**Label:**`` or ``Label:`` at line start.

    Text with no recognizable label comes back as one unlabeled block.
    """
    if not text or not text.strip():
        return []
    normalized = _normalize(text)
    blocks = []
    for match in _LABELED_BLOCK_RE.finditer(normalized):
        label = re.sub(r":+\s*$", "", (match.group(1) or "").replace("**", "")).strip()
        content = clean_block_content((match.group(2) or "").strip())
        if content:
            blocks.append(LabeledBlock(label=label, content=content))
    if not blocks and normalized:
        blocks.append(LabeledBlock(label="", content=clean_block_content(normalized)))
    return blocks


def split_by_top_level_marker(text: str, marker: str) -> List[str]:
    """Split on ``**Marker:**`` / ``Marker:`` at line start; the markers themselves are dropped"""
    if not text or not text.strip():
        return []
    escaped = re.escape(marker)
    pattern = re.compile(
        rf"(?:^|\n)\s*(?:\*\*{escaped}\*\*:?|{escaped}:)\s*",
        re.IGNORECASE | re.MULTILINE,
    )
    return _non_empty(pattern.split(_normalize(text)))


def _split_layer_blocks(text: str) -> List[str]:
    if not text or not text.strip():
        return []
    normalized = _normalize(text)
    parts = _non_empty(_LAYER_LOOKAHEAD_RE.split(normalized))
    if len(parts) <= 1 and len(_BOLD_LAYER_RE.findall(normalized)) > 1:
        # blocks glued together without newlines
        parts = _non_empty(re.split(r"\s*\*\*Layer\*\*:?\s*", normalized, flags=re.IGNORECASE))
        parts = [p if _BOLD_LAYER_RE.match(p) else f"**Layer:** {p}" for p in parts]
    return parts


def _strip_risk_content_from_layer_block(block: str) -> str:
    if _RISK_AT_START_RE.search(block):
        match = _LAYER_START_RE.search(block)
        return block[match.start():].strip() if match else ""
    match = _RISK_ON_NEW_LINE_RE.search(block)
    if match is None:
        return block
    return block[:match.start()].strip()


def _strip_layer_content_from_risk_block(block: str) -> str:
    if _LAYER_AT_START_RE.search(block):
        match = _RISK_START_RE.search(block)
        return block[match.start():].strip() if match else ""
    match = _LAYER_ON_NEW_LINE_RE.search(block)
    if match is None:
        return block
    return block[:match.start()].strip()


def _looks_like_risk_block(segment: str) -> bool:
    lower = segment.lower()
    return any(keyword in lower for keyword in _RISK_KEYWORDS)


def _looks_like_layer_block(segment: str) -> bool:
    lower = segment.lower()
    if "evidence" in lower or "next test" in lower:
        return True
    return re.search(rf"^\s*\*\*layer\*\*:?|^\s*layer:\s*({LAYER_NAMES})\b", lower) is not None


def _is_placeholder(blocks: List[LabeledBlock]) -> bool:
    return not any(
        re.sub(r"\*+", "", re.sub(r"\s+", "", b.content or ""))
        for b in blocks
    )


def parse_risks_blocks(text: str) -> List[List[LabeledBlock]]:
    """One list of labeled blocks per risk; layer text and placeholder risks are dropped"""
    sections = split_by_top_level_marker(text, "Risk")
    if len(sections) <= 1 and text and text.strip():
        sections = _non_empty(_RISK_LOOKAHEAD_RE.split(text.strip()))
    result = []
    for block in sections:
        cleaned = _strip_layer_content_from_risk_block(block)
        if not cleaned or not _looks_like_risk_block(cleaned):
            continue
        with_risk = cleaned if _RISK_LABEL_RE.search(cleaned) else f"**Risk:** {cleaned}"
        parsed = parse_labeled_blocks(with_risk)
        if parsed and not _is_placeholder(parsed):
            result.append(parsed)
    return result


def parse_layers_blocks(text: str) -> List[List[LabeledBlock]]:
    """One list of labeled blocks per hypothesis layer; risk text is dropped"""
    result = []
    for block in _split_layer_blocks(text):
        cleaned = _strip_risk_content_from_layer_block(block)
        if not cleaned or not _looks_like_layer_block(cleaned):
            continue
        with_layer = cleaned if _LAYER_PREFIX_RE.search(cleaned) else f"**Layer:** {cleaned}"
        parsed = parse_labeled_blocks(with_layer)
        if parsed and not _is_placeholder(parsed):
            result.append(parsed)
    return result


def normalize_layer_name(name: str) -> str:
    lower = re.sub(r"[.\s]+$", "", (name or "").strip().lower())
    if lower in LAYER_ORDER:
        return lower
    for candidate in ("existence", "awareness", "consideration", "intent"):
        if candidate in lower:
            return candidate
    if "pay" in lower:
        return "pay_intention"
    return "existence"


def parse_synthesis_layers_to_structured(text: str) -> List[SynthesisLayerItem]:
    """Layer items sorted existence -> pay_intention"""
    items = []
    for i, blocks in enumerate(parse_layers_blocks(text)):
        description = evidence_summary = next_test = ""
        layer_block = None
        for b in blocks:
            label = (b.label or "").lower()
            if label == "layer":
                description = b.content
                if layer_block is None:
                    layer_block = b
            elif "evidence" in label:
                evidence_summary = b.content
            elif "next test" in label:
                next_test = b.content
        if layer_block is not None:
            layer = normalize_layer_name(layer_block.content)
        else:
            layer = LAYER_ORDER[i] if i < len(LAYER_ORDER) else "existence"
        items.append(SynthesisLayerItem(
            layer=layer,
            description=description,
            evidence_summary=evidence_summary,
            next_test=next_test,
        ))
    return sorted(items, key=lambda item: LAYER_ORDER.index(item.layer))


def parse_bullet_lines(text: str) -> List[str]:
    """Lines with any leading ``-``, ``*`` or ``•`` markers removed; blank lines dropped"""
    if not text or not text.strip():
        return []
    lines = (re.sub(r"^[\s•\-*]+\s*", "", line).strip() for line in text.split("\n"))
    return [line for line in lines if line]


def parse_synthesis(result: SynthesisResult) -> ParsedSynthesis:
    """Card view of a synthesis, one entry per section.

    Hypothesis layers only appear when the model folded ``Layer`` blocks into
    the risks text; they are split out instead of being shown as risks.
    """
    risks_text = result.key_risks_and_assumptions
    layers = []
    if _LAYER_START_RE.search(risks_text or ""):
        layers = parse_synthesis_layers_to_structured(risks_text)
    return ParsedSynthesis(
        decision_framing=parse_labeled_blocks(result.decision_framing),
        signal_summary=parse_labeled_blocks(result.signal_summary),
        what_signals_say=parse_bullet_lines(result.what_signals_say),
        key_risks=parse_risks_blocks(risks_text),
        layers=layers,
        recommendation=parse_labeled_blocks(result.recommendation),
        founder_safe_summary=parse_labeled_blocks(result.founder_safe_summary),
    )
