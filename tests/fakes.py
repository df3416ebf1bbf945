"""Hand-written fakes for the LLM client and artifact store."""

import copy
import json

from copysmith.models.task_spec import TaskSpec

VALID_DRAFT = (
    "Acme Ledger closes your books in 3 days.\n\n"
    "Finance teams still close in 10 days. Spreadsheets slow every step.\n\n"
    "Ledger matches 4,000 bank lines per minute. Nordic Bank cut its close to 72 hours.\n\n"
    "Book a 20 minute demo with Dana."
)

INVALID_DRAFT = "We're thrilled to share this amazing update"

TASK_SPEC = {
    "copy_type": "email",
    "channel": "email_newsletter",
    "audience": {
        "who": "Finance leads at mid-size companies",
        "context": "Month-end close takes two weeks",
        "skepticism_level": "high",
    },
    "goal": {"primary_action": "Book a demo"},
    "inputs": {
        "product_or_topic": "Acme Ledger",
        "proof_material": [
            {"type": "data", "content": "Matches 4,000 bank lines per minute"},
            {"type": "case", "content": "Nordic Bank cut its close to 72 hours"},
        ],
        "must_include": ["Acme Ledger"],
        "must_avoid": ["amazing", "thrilled"],
    },
    "voice_profile": {"persona": "calm operator", "formality": "medium"},
    "length_budget": {"unit": "words", "target": 80, "hard_max": 120},
}


def make_task_spec(**overrides) -> TaskSpec:
    data = copy.deepcopy(TASK_SPEC)
    data.update(overrides)
    return TaskSpec.model_validate(data)


def beat(beat_id, function, first_word_types, required_elements, forbidden=()):
    return {
        "id": beat_id,
        "function": function,
        "job": f"{function} beat",
        "target_length": {"unit": "words", "max": 30},
        "structure": {
            "max_words": 30,
            "required_elements": list(required_elements),
            "first_word_types": list(first_word_types),
            "forbidden_in_beat": list(forbidden),
        },
    }


BEAT_SHEET = {
    "total_length": {"unit": "words", "target": 80, "hard_max": 120},
    "beats": [
        beat("B1", "hook", ["noun", "verb"], ["specific_noun"], ["hello", "dear"]),
        beat("B2", "tension", ["noun", "pronoun"], ["number"]),
        beat("B3", "resolution", ["noun", "verb"], ["proper_noun", "number"]),
        beat("B4", "action", ["imperative"], ["imperative"], ["learn more", "click here"]),
    ],
    "writing_constraints": {
        "max_sentence_words": 15,
        "max_adjectives_per_noun": 1,
        "specific_detail_every_n_sentences": 2,
        "forbidden_words": ["leverage"],
        "forbidden_patterns": [],
    },
}


def draft_payload(text: str, trace: bool = True) -> dict:
    payload = {
        "draft": text,
        "self_check": {"followed_beats": True, "added_new_claims": False},
    }
    if trace:
        payload["beat_trace"] = [
            {"beat_id": "B1", "start_snippet": "Acme Ledger closes"},
            {"beat_id": "B2", "start_snippet": "Finance teams"},
            {"beat_id": "B3", "start_snippet": "Ledger matches"},
            {"beat_id": "B4", "start_snippet": "Book a 20"},
        ]
    return payload


def final_payload(text: str) -> dict:
    return {
        "final": text,
        "variants": {"direct": text, "story_led": text, "conversational": text},
        "extras": {"email_subject_lines": ["Close in 3 days"]},
        "qa": {
            "matches_single_job": True,
            "no_new_claims": True,
            "proof_lane_consistent": True,
            "contains_concrete_detail": True,
            "contains_constraint_or_tradeoff": False,
            "stance_present": True,
            "length_ok": True,
        },
    }


def critique_payload(passed: bool = True, instructions: str | None = None, critical_failed: bool = False) -> dict:
    return {
        "overall_pass": passed,
        "score": 8 if passed else 4,
        "rubric_results": [
            {"criterion": "Human Voice", "passed": not critical_failed, "feedback": "Reads like a template" if critical_failed else "ok"},
            {"criterion": "Clear Action", "passed": True, "feedback": "One CTA"},
        ],
        "regeneration_instructions": instructions,
        "strengths": ["Specific numbers"],
        "improvements": [],
    }


DEFAULT_PAYLOADS = {
    "CreativeBrief": {
        "reader_model": {
            "what_they_want_now": "A faster close",
            "what_they_fear_or_resist": "Another tool to migrate",
            "what_they_already_believe": "Close is slow by nature",
            "what_would_make_them_trust": "A named bank result",
        },
        "single_job": "Make them believe a 3-day close is possible",
        "stance": {"we_assert": "Close speed is a matching problem", "we_reject": "More headcount", "confidence_level": "high"},
        "proof_lane": "case",
        "nonnegotiables": {"must_include": ["Acme Ledger"], "must_avoid": ["amazing"]},
    },
    "MessageArchitecture": {
        "throughline": "Matching speed sets close speed",
        "primary_claim": "Acme Ledger closes books in 3 days",
        "supporting_claims": [{"claim": "Matches 4,000 lines per minute", "role": "why true"}],
        "proof_plan": [{"supports": "primary", "proof": "Nordic Bank 72 hours", "proof_type": "case"}],
        "ordering": {"sequence": ["hook", "tension", "resolution", "action"], "why_this_order": "Story"},
        "allowed_claim_strength": "firm",
    },
    "BeatSheet": BEAT_SHEET,
    "DraftV0": draft_payload(VALID_DRAFT),
    "CohesionReport": {"topic_chain": {}, "draft_v1": VALID_DRAFT},
    "RhythmReport": {
        "sentence_stats": {
            "count": 6,
            "avg_words": 6.5,
            "distribution": {"short_0_10": 6, "mid_11_20": 0, "long_21_plus": 0},
        },
        "draft_v2": VALID_DRAFT,
    },
    "ChannelPassReport": {
        "scan_optimization": {"first_lines_strengthened": True, "left_edge_words_loaded": True},
        "draft_v3": VALID_DRAFT,
    },
    "FinalPackage": final_payload(VALID_DRAFT),
    "CritiqueResponse": critique_payload(),
}


class FakeLLM:
    """Scripted stand-in for LLMClient.generate.

    responses maps a schema name to a list of payloads handed out in order
    (the last one repeats). A payload may be a dict, raw text, or an
    exception instance to raise.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = {k: list(v) for k, v in (responses or {}).items()}
        self.calls: list[dict] = []

    def generate(self, config, schema, system_prompt, prompt, label=""):
        name = schema.__name__
        self.calls.append({"schema": name, "config": config, "system_prompt": system_prompt, "prompt": prompt})

        scripted = self.responses.get(name)
        if scripted:
            payload = scripted.pop(0) if len(scripted) > 1 else scripted[0]
        else:
            payload = DEFAULT_PAYLOADS[name]

        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, dict):
            return json.dumps(payload)
        return payload

    def calls_for(self, schema_name: str) -> list[dict]:
        return [c for c in self.calls if c["schema"] == schema_name]

    @property
    def schema_order(self) -> list[str]:
        return [c["schema"] for c in self.calls]


class RecordingStore:
    """ArtifactStore that keeps every snapshot in memory."""

    def __init__(self):
        self.snapshots: list[dict] = []

    def save_snapshot(self, run_id, snapshot, project_id=None):
        self.snapshots.append(snapshot)


class BrokenStore:
    """ArtifactStore whose backend is always down."""

    def __init__(self):
        self.attempts = 0

    def save_snapshot(self, run_id, snapshot, project_id=None):
        self.attempts += 1
        raise ConnectionError("store offline")
