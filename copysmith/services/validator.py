"""Draft validator - enforces writing rules with hard rejections.

Violations cause regeneration, not patching. Rules run in a fixed order so
that the violation list for a given text and configuration is always the
same:

1. forbidden words
2. forbidden patterns
3. sentence length
4. adjective stacking
5. paragraph openers
6. specificity cadence
7. beat conformance (needs a beat sheet)
8. length budget (needs a length budget)
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from spacy.language import Language
from spacy.tokens import Span

from ..models.artifacts import Beat, BeatSheet, BeatTraceEntry
from ..models.copy_types import (
    FORBIDDEN_PARAGRAPH_OPENERS,
    UNIVERSAL_FORBIDDEN_PATTERNS,
    compile_patterns,
    get_all_forbidden_terms,
    get_copy_type_rules,
)
from ..models.task_spec import LengthBudget
from ..models.validation import (
    Severity,
    ValidationPolicy,
    ValidationResult,
    Violation,
    ViolationType,
)
from ..utils import truncate
from . import text_stats

logger = logging.getLogger(__name__)


@dataclass
class _Tally:
    """Running count of checks while one text is validated."""
    violations: list[Violation] = field(default_factory=list)
    run: int = 0
    passed: int = 0

    def check(self, found: list[Violation]) -> None:
        self.run += 1
        if found:
            self.violations.extend(found)
        else:
            self.passed += 1


def dedupe_terms(*term_lists: Sequence[str], fold_case: bool = True) -> list[str]:
    """Merge term lists keeping first-seen order.

    Words compare case-insensitively. Regex patterns must pass
    fold_case=False, since case changes their meaning (\\s vs \\S).
    """
    seen: set[str] = set()
    merged = []
    for terms in term_lists:
        for term in terms:
            key = term.strip().lower() if fold_case else term.strip()
            if key and key not in seen:
                seen.add(key)
                merged.append(term.strip())
    return merged


def _term_regex(term: str) -> re.Pattern:
    return re.compile(rf"(?<![\w']){re.escape(text_stats.normalize(term))}(?![\w'])", re.IGNORECASE)


class DraftValidator:
    """Check generated prose against the rule set for its copy type."""

    def __init__(self, policy: ValidationPolicy | None = None, nlp: Language | None = None):
        self.policy = policy or ValidationPolicy()
        self.nlp = nlp or text_stats.load_nlp()

    def validate(
        self,
        text: str,
        copy_type: str,
        beat_sheet: BeatSheet | None = None,
        beat_trace: Sequence[BeatTraceEntry] | None = None,
        length_budget: LengthBudget | None = None,
        extra_forbidden: Sequence[str] = (),
    ) -> ValidationResult:
        """
        Validate one draft.

        Args:
            text: The prose to check.
            copy_type: Selects default limits and forbidden terms.
            beat_sheet: When given, its writing constraints override the
                copy-type defaults and its beats are checked.
            beat_trace: Optional beat start snippets for mapping beats to spans.
            length_budget: When given, total length must not exceed hard_max.
            extra_forbidden: Task-level denylist (TaskSpec.forbidden_words).

        Returns ValidationResult; never raises on bad prose.
        """
        rules = get_copy_type_rules(copy_type)
        constraints = beat_sheet.writing_constraints if beat_sheet else None

        max_sentence_words = constraints.max_sentence_words if constraints else rules.max_sentence_words
        max_adjectives = constraints.max_adjectives_per_noun if constraints else rules.max_adjectives_per_noun
        every_n = constraints.specific_detail_every_n_sentences if constraints else rules.specific_detail_every_n_sentences

        forbidden = dedupe_terms(
            get_all_forbidden_terms(copy_type),
            extra_forbidden,
            constraints.forbidden_words if constraints else (),
        )
        patterns = dedupe_terms(
            UNIVERSAL_FORBIDDEN_PATTERNS,
            constraints.forbidden_patterns if constraints else (),
            fold_case=False,
        )

        normalized = text_stats.normalize(text)
        sentences = text_stats.sentences(self.nlp, normalized)
        tally = _Tally()

        tally.check(self._check_forbidden_words(normalized, forbidden))
        tally.check(self._check_forbidden_patterns(normalized, patterns))

        severity = self._severity(self.policy.sentence_length_hard)
        for i, sentence in enumerate(sentences):
            tally.check(self._check_sentence_length(sentence, i, max_sentence_words, severity))

        severity = self._severity(self.policy.adjective_stacking_hard)
        for i, sentence in enumerate(sentences):
            tally.check(self._check_adjective_stacking(sentence, i, max_adjectives, severity))

        for i, paragraph in enumerate(text_stats.split_paragraphs(normalized)):
            tally.check(self._check_paragraph_opener(paragraph, i))

        self._check_specificity(sentences, every_n, tally)

        if beat_sheet is not None:
            for beat, span in self.map_beats(normalized, beat_sheet.beats, beat_trace):
                self._check_beat(beat, span, tally)

        if length_budget is not None:
            tally.check(self._check_length(normalized, length_budget))

        hard = [v for v in tally.violations if v.severity == Severity.HARD]
        score = tally.passed / tally.run if tally.run else 1.0
        logger.debug(f"Validated {copy_type} draft: {tally.passed}/{tally.run} checks passed, {len(hard)} hard violations")

        return ValidationResult(
            is_valid=not hard,
            score=score,
            violations=tally.violations,
            checks_run=tally.run,
            checks_passed=tally.passed,
        )

    @staticmethod
    def _severity(hard: bool) -> Severity:
        return Severity.HARD if hard else Severity.SOFT

    # ===== Rules =====

    def _check_forbidden_words(self, text: str, terms: list[str]) -> list[Violation]:
        found = []
        for term in terms:
            match = _term_regex(term).search(text)
            if match:
                found.append(Violation(
                    type=ViolationType.FORBIDDEN_WORD,
                    details=f'The word "{term}" is forbidden. Remove or replace it.',
                    location=f'char {match.start()}: "{match.group(0)}"',
                ))
        return found

    def _check_forbidden_patterns(self, text: str, patterns: list[str]) -> list[Violation]:
        found = []
        for pattern in compile_patterns(patterns):
            match = pattern.search(text)
            if match:
                details = (
                    "Em dashes are forbidden. Use periods or commas instead."
                    if match.group(0).strip() in ("—", "--")
                    else f'Pattern "{pattern.pattern}" is forbidden. Rewrite this phrase.'
                )
                found.append(Violation(
                    type=ViolationType.FORBIDDEN_PATTERN,
                    details=details,
                    location=f'char {match.start()}: "{match.group(0)}"',
                ))
        return found

    def _check_sentence_length(self, sentence: Span, index: int, max_words: int, severity: Severity) -> list[Violation]:
        count = text_stats.count_words(sentence.text)
        if count <= max_words:
            return []
        return [Violation(
            type=ViolationType.SENTENCE_TOO_LONG,
            details=f'Sentence has {count} words but max is {max_words}: "{truncate(sentence.text)}"',
            location=f"sentence {index + 1}",
            severity=severity,
        )]

    def _check_adjective_stacking(self, sentence: Span, index: int, max_adjectives: int, severity: Severity) -> list[Violation]:
        found = []
        for run in text_stats.adjective_runs(sentence):
            if len(run) > max_adjectives:
                found.append(Violation(
                    type=ViolationType.ADJECTIVE_STACKING,
                    details=f'{len(run)} adjectives stacked ("{", ".join(run)}"). Max {max_adjectives} per noun.',
                    location=f"sentence {index + 1}",
                    severity=severity,
                ))
        return found

    def _check_paragraph_opener(self, paragraph: str, index: int) -> list[Violation]:
        opener = (text_stats.words(paragraph) or [""])[0]
        if text_stats.base_word(opener) not in FORBIDDEN_PARAGRAPH_OPENERS:
            return []
        return [Violation(
            type=ViolationType.PARAGRAPH_OPENER,
            details=f'Paragraph opens with "{opener}". Open with a noun, verb or imperative.',
            location=f"paragraph {index + 1}",
        )]

    def _check_specificity(self, sentences: list[Span], every_n: int, tally: _Tally) -> None:
        """Each window of every_n sentences needs a number, proper noun or quote.

        Windows are consecutive and non-overlapping. Windows shorter than
        policy.min_window_chars are not checked.
        """
        if every_n <= 0:
            return
        severity = self._severity(self.policy.specificity_hard)
        for start in range(0, len(sentences), every_n):
            window = sentences[start:start + every_n]
            joined = " ".join(sent.text for sent in window)
            if len(joined) < self.policy.min_window_chars:
                continue
            if text_stats.has_specific_detail(window):
                tally.check([])
                continue
            tally.check([Violation(
                type=ViolationType.MISSING_SPECIFICITY,
                details="This section lacks specific details (numbers, proper nouns or quoted facts). Add concrete evidence.",
                location=f"sentences {start + 1}-{start + len(window)}",
                severity=severity,
            )])

    def _check_beat(self, beat: Beat, span: str, tally: _Tally) -> None:
        structure = beat.structure
        location = f"beat {beat.id} ({beat.function})"
        sents = text_stats.sentences(self.nlp, span)

        if structure.first_word_types:
            types = text_stats.first_word_types(sents[0]) if sents else set()
            opener = (text_stats.words(span) or [""])[0]
            if types & set(structure.first_word_types):
                tally.check([])
            else:
                tally.check([Violation(
                    type=ViolationType.BEAT_FIRST_WORD,
                    details=f'Beat opens with "{opener}". Expected one of: {", ".join(structure.first_word_types)}.',
                    location=location,
                )])

        if structure.required_elements:
            if any(text_stats.has_element(sents, e) for e in structure.required_elements):
                tally.check([])
            else:
                tally.check([Violation(
                    type=ViolationType.BEAT_MISSING_ELEMENT,
                    details=f'Beat needs at least one of: {", ".join(structure.required_elements)}.',
                    location=location,
                )])

        if structure.forbidden_in_beat:
            found = []
            for term in dedupe_terms(structure.forbidden_in_beat):
                match = _term_regex(term).search(span)
                if match:
                    found.append(Violation(
                        type=ViolationType.BEAT_FORBIDDEN_TERM,
                        details=f'"{term}" is forbidden in the {beat.function} beat.',
                        location=location,
                    ))
            tally.check(found)

    def _check_length(self, text: str, budget: LengthBudget) -> list[Violation]:
        size = text_stats.count_words(text) if budget.unit == "words" else len(text)
        if size <= budget.hard_max:
            return []
        return [Violation(
            type=ViolationType.LENGTH_EXCEEDED,
            details=f"Text is {size} {budget.unit}; hard max is {budget.hard_max} (target {budget.target}).",
            location="whole text",
        )]

    # ===== Beat mapping =====

    def map_beats(
        self,
        text: str,
        beats: Sequence[Beat],
        beat_trace: Sequence[BeatTraceEntry] | None = None,
    ) -> list[tuple[Beat, str]]:
        """Pair each beat with the span of text that realizes it.

        Trace snippets are located in order; beats whose snippet is missing
        are skipped. Without a usable trace, paragraphs (or sentences, when
        there are fewer paragraphs than beats) are split evenly across beats.
        """
        if beat_trace:
            mapped = self._map_by_trace(text, beats, beat_trace)
            if mapped:
                return mapped

        units = text_stats.split_paragraphs(text)
        if len(units) < len(beats):
            units = text_stats.split_sentences(self.nlp, text)
        if not units or not beats:
            return []

        if len(units) < len(beats):
            return list(zip(beats, units))

        mapped = []
        for i, beat in enumerate(beats):
            lo = i * len(units) // len(beats)
            hi = (i + 1) * len(units) // len(beats)
            mapped.append((beat, "\n\n".join(units[lo:hi])))
        return mapped

    def _map_by_trace(self, text: str, beats: Sequence[Beat], trace: Sequence[BeatTraceEntry]) -> list[tuple[Beat, str]]:
        by_id = {b.id: b for b in beats}
        lower = text.lower()
        starts: list[tuple[int, Beat]] = []
        cursor = 0
        for entry in trace:
            beat = by_id.get(entry.beat_id)
            snippet = text_stats.normalize(entry.start_snippet).strip().lower()
            if beat is None or not snippet:
                continue
            pos = lower.find(snippet, cursor)
            if pos == -1:
                continue
            starts.append((pos, beat))
            cursor = pos + 1

        mapped = []
        for i, (pos, beat) in enumerate(starts):
            end = starts[i + 1][0] if i + 1 < len(starts) else len(text)
            mapped.append((beat, text[pos:end].strip()))
        return mapped
