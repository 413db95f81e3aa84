"""Tests for splitting synthesis text into labeled card blocks"""

from mvo.modules.synthesis.parser import (
    clean_block_content,
    normalize_layer_name,
    parse_bullet_lines,
    parse_labeled_blocks,
    parse_layers_blocks,
    parse_risks_blocks,
    parse_synthesis,
    parse_synthesis_layers_to_structured,
    split_by_top_level_marker,
)
from mvo.modules.synthesis.schemas import SynthesisResult

PROMPT_STYLE_RISKS = (
    "**Risk:** Low demand.\n"
    "**Why it matters:** No users.\n"
    "**Evidence for/against:** Few votes.\n"
    "**How to reduce:** Run a survey.\n"
    "\n"
    "**Risk:** Pricing.\n"
    "**Why it matters:** Revenue.\n"
    "**Evidence for/against:** None.\n"
    "**How to reduce:** Test price."
)


def _pairs(blocks):
    return [(b.label, b.content) for b in blocks]


class TestLabeledBlocks:
    def test_bold_labels(self):
        text = "**Decision:** Launch a pilot.\n**Current confidence:** Low because few votes."
        assert _pairs(parse_labeled_blocks(text)) == [
            ("Decision", "Launch a pilot."),
            ("Current confidence", "Low because few votes."),
        ]

    def test_plain_labels_and_crlf(self):
        text = "Path: Narrow scope\r\nWhy: The audience is unclear."
        assert _pairs(parse_labeled_blocks(text)) == [
            ("Path", "Narrow scope"),
            ("Why", "The audience is unclear."),
        ]

    def test_orphan_bold_markers_are_stripped(self):
        assert _pairs(parse_labeled_blocks("**Risk:** ** Low awareness.")) == [
            ("Risk", "Low awareness."),
        ]

    def test_text_without_labels_is_one_block(self):
        assert _pairs(parse_labeled_blocks("Just a plain paragraph without labels")) == [
            ("", "Just a plain paragraph without labels"),
        ]

    def test_blank_text(self):
        assert parse_labeled_blocks("") == []
        assert parse_labeled_blocks("   \n ") == []

    def test_clean_block_content(self):
        assert clean_block_content(" ** text **") == "text"
        assert clean_block_content("* text") == "text"
        assert clean_block_content("") == ""


class TestTopLevelMarker:
    def test_split_plain_marker(self):
        assert split_by_top_level_marker("Risk: A\nRisk: B", "Risk") == ["A", "B"]

    def test_split_bold_marker(self):
        assert split_by_top_level_marker("**Risk**: A\n**Risk**: B", "Risk") == ["A", "B"]

    def test_blank(self):
        assert split_by_top_level_marker("  ", "Risk") == []


class TestRisks:
    def test_prompt_style_risks(self):
        risks = parse_risks_blocks(PROMPT_STYLE_RISKS)
        assert len(risks) == 2
        assert _pairs(risks[0]) == [
            ("Risk", "Low demand."),
            ("Why it matters", "No users."),
            ("Evidence for/against", "Few votes."),
            ("How to reduce", "Run a survey."),
        ]
        assert risks[1][0].content == "Pricing."

    def test_intro_text_is_dropped(self):
        risks = parse_risks_blocks("Here are the risks.\nRisk: A\nWhy it matters: B")
        assert [_pairs(r) for r in risks] == [[("Risk", "A"), ("Why it matters", "B")]]

    def test_layer_text_inside_a_risk_is_removed(self):
        text = "Risk: Churn\nWhy it matters: Revenue\nLayer: existence\nEvidence: signups"
        risks = parse_risks_blocks(text)
        assert [_pairs(r) for r in risks] == [[("Risk", "Churn"), ("Why it matters", "Revenue")]]

    def test_segments_without_risk_sublabels_are_skipped(self):
        assert parse_risks_blocks("Risk: something vague\nRisk: another one") == []


class TestLayers:
    LAYERS = (
        "Layer: awareness\nEvidence: Few visits\nNext test: Run ads\n"
        "Layer: existence\nEvidence: 12 signups\nNext test: Landing page"
    )

    def test_one_block_per_layer(self):
        blocks = parse_layers_blocks(self.LAYERS)
        assert len(blocks) == 2
        assert _pairs(blocks[0]) == [
            ("Layer", "awareness"),
            ("Evidence", "Few visits"),
            ("Next test", "Run ads"),
        ]

    def test_structured_layers_follow_layer_order(self):
        items = parse_synthesis_layers_to_structured(self.LAYERS)
        assert [i.layer for i in items] == ["existence", "awareness"]
        assert items[0].evidence_summary == "12 signups"
        assert items[0].next_test == "Landing page"
        assert items[1].description == "awareness"

    def test_normalize_layer_name(self):
        assert normalize_layer_name("Existence.") == "existence"
        assert normalize_layer_name("pay_intention") == "pay_intention"
        assert normalize_layer_name("Willingness to pay") == "pay_intention"
        assert normalize_layer_name("something else") == "existence"


def test_bullet_lines():
    assert parse_bullet_lines("- One.\n• Two.\n\n* Three.") == ["One.", "Two.", "Three."]
    assert parse_bullet_lines("") == []


def test_parse_synthesis_card_view():
    result = SynthesisResult(
        decision_framing="**Decision:** Test demand first.",
        what_signals_say="- Votes skew to use.\n- Dwell time is high.",
        key_risks_and_assumptions=PROMPT_STYLE_RISKS,
        recommendation="**Path:** Run targeted validation test\n**Why:** Demand is unproven.",
    )
    parsed = parse_synthesis(result)
    assert _pairs(parsed.decision_framing) == [("Decision", "Test demand first.")]
    assert parsed.what_signals_say == ["Votes skew to use.", "Dwell time is high."]
    assert len(parsed.key_risks) == 2
    assert parsed.layers == []
    assert parsed.recommendation[0].label == "Path"
    assert parsed.founder_safe_summary == []
