"""Copy type rules - structural limits enforced per copy type.

These are validated, not suggested: violations cause regeneration.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Universal forbidden words/phrases - apply to ALL copy types
UNIVERSAL_FORBIDDEN: list[str] = [
    # Abstract nouns without referent
    "potential", "journey", "experience", "solution", "leverage", "synergy",
    "optimize", "enhance", "empower", "revolutionize", "transform", "elevate",
    "streamline", "unlock", "cutting-edge", "game-changing", "next-level",
    "world-class", "best-in-class", "state-of-the-art", "seamless",
    "seamlessly", "effortless", "effortlessly", "robust", "comprehensive",
    "holistic",
    # Filler phrases
    "in order to", "the fact that", "it is important to note",
    "it goes without saying", "needless to say", "at the end of the day",
    "when all is said and done", "all things considered", "as a matter of fact",
    # Hollow enthusiasm
    "amazing", "incredible", "awesome", "fantastic", "unbelievable",
    "mind-blowing", "super", "epic",
    # Weak hedging
    "just", "simply", "really", "very", "quite", "basically", "essentially",
    "actually",
    # False empathy
    "no worries", "don't worry", "rest assured", "we understand",
    # Robotic transitions
    "furthermore", "moreover", "additionally", "in conclusion", "to summarize",
    # Salesy urgency
    "act now", "don't miss out", "limited time", "hurry", "before it's too late",
]

# Structural cliches (regex). Em dashes always count.
UNIVERSAL_FORBIDDEN_PATTERNS: list[str] = [
    r"imagine a world where",
    r"you will (be able to|see|notice|experience|feel)",
    r"you can (easily|quickly|simply)",
    r"helps you to",
    r"allows you to",
    r"enables you to",
    r"designed to help",
    r"built to help",
    r"we (believe|think|feel) that",
    r"unlock your",
    r"take your .* to the next level",
    r"supercharge your",
    r"turbocharge your",
    r"—",
    r"\s--\s",
]

# Paragraphs must open on the point, never on a transition or a subordinate clause
FORBIDDEN_PARAGRAPH_OPENERS: frozenset[str] = frozenset({
    "additionally", "furthermore", "moreover", "however", "therefore",
    "thus", "hence", "consequently", "meanwhile", "nevertheless",
    "nonetheless", "in", "with", "by", "for", "as", "when", "while",
    "although", "because", "since", "if", "unless",
})


@dataclass(frozen=True)
class BeatRules:
    """Default structure for a beat function within a copy type."""
    max_words: int
    required_elements: tuple[str, ...] = ()
    first_word_types: tuple[str, ...] = ()
    forbidden: tuple[str, ...] = ()


@dataclass(frozen=True)
class CopyTypeRules:
    type: str
    description: str
    max_beats: int
    max_total_words: int
    target_words: int
    max_sentence_words: int
    max_adjectives_per_noun: int
    specific_detail_every_n_sentences: int
    beat_structures: dict[str, BeatRules] = field(default_factory=dict)
    required_beat_sequence: tuple[str, ...] = ()
    additional_forbidden: tuple[str, ...] = ()
    format_rules: tuple[str, ...] = ()


COPY_TYPE_RULES: dict[str, CopyTypeRules] = {
    "email": CopyTypeRules(
        type="email",
        description="Transactional or nurture emails",
        max_beats=4,               # hook, tension, resolution, action
        max_total_words=120,
        target_words=80,
        max_sentence_words=15,
        max_adjectives_per_noun=1,
        specific_detail_every_n_sentences=2,
        beat_structures={
            "hook": BeatRules(20, ("specific_noun",), ("noun", "verb", "pronoun"),
                              ("hello", "hi there", "hey there", "dear", "hope this finds",
                               "have you ever", "picture this", "consider this")),
            "tension": BeatRules(30, ("specific_noun",), ("noun", "verb", "pronoun"),
                                 ("here are", "there are several", "consider the following")),
            "resolution": BeatRules(35, ("specific_noun",), ("noun", "verb")),
            "action": BeatRules(15, ("imperative",), ("imperative", "verb"),
                                ("click here", "learn more", "check it out", "find out more")),
        },
        required_beat_sequence=("hook", "tension", "resolution", "action"),
        additional_forbidden=(
            "hope this finds you well", "reaching out", "touching base",
            "circling back", "per my last email", "frustrated", "struggling",
            "overwhelmed", "that's where", "stands out", "why does this matter",
            "curious about", "skeptical",
        ),
        format_rules=(
            "Opening line must be statement or imperative, not greeting",
            "Maximum 4 paragraphs total",
            "One point per email - not a blog post",
            "CTA must be single action under 5 words",
        ),
    ),
    "landing_page": CopyTypeRules(
        type="landing_page",
        description="Website landing page or homepage",
        max_beats=6,
        max_total_words=300,
        target_words=200,
        max_sentence_words=18,
        max_adjectives_per_noun=1,
        specific_detail_every_n_sentences=2,
        beat_structures={
            "hook": BeatRules(12, ("specific_noun",), ("noun", "verb"), ("welcome to", "introducing")),
            "problem": BeatRules(25, ("specific_noun",), ("noun", "verb")),
            "solution": BeatRules(30, ("specific_noun",), ("noun", "verb")),
            "proof": BeatRules(25, ("number", "proper_noun"), ("noun", "verb")),
            "mechanism": BeatRules(30, ("specific_noun",), ("noun", "verb")),
            "cta": BeatRules(8, ("imperative",), ("imperative", "verb"),
                             ("get started", "learn more", "sign up now")),
        },
        required_beat_sequence=("hook", "problem", "solution", "proof", "cta"),
        additional_forbidden=("helps you", "designed for", "perfect for", "ideal for"),
        format_rules=(
            "First line must state what it does, not what it helps with",
            "Every section needs a scannable heading",
            "Front-load paragraphs with the key point",
            "Use specific numbers in proof sections",
        ),
    ),
    "website": CopyTypeRules(
        type="website",
        description="General website pages (about, features, etc.)",
        max_beats=6,
        max_total_words=350,
        target_words=250,
        max_sentence_words=20,
        max_adjectives_per_noun=1,
        specific_detail_every_n_sentences=3,
        beat_structures={
            "hook": BeatRules(15, ("specific_noun",), ("noun", "verb")),
            "problem": BeatRules(30, ("specific_noun",), ("noun", "verb")),
            "solution": BeatRules(35, ("specific_noun",), ("noun", "verb")),
            "proof": BeatRules(30, ("number",), ("noun", "verb")),
            "cta": BeatRules(10, ("imperative",), ("imperative", "verb")),
        },
        required_beat_sequence=("hook", "problem", "solution", "proof", "cta"),
        format_rules=(
            "F-pattern optimization: front-load every paragraph",
            "Use subheadings every 100-150 words",
            "Make scannable with bullets for lists of 3+ items",
        ),
    ),
    "social": CopyTypeRules(
        type="social",
        description="Social media posts (LinkedIn, X, etc.)",
        max_beats=4,
        max_total_words=80,
        target_words=50,
        max_sentence_words=12,
        max_adjectives_per_noun=1,
        specific_detail_every_n_sentences=2,
        beat_structures={
            "hook": BeatRules(10, (), ("noun", "verb", "question_word"), ("did you know", "hot take")),
            "claim": BeatRules(15, ("specific_noun",), ("noun", "verb", "pronoun")),
            "proof": BeatRules(20, ("number",), ("noun", "verb")),
            "cta": BeatRules(8, (), ("verb", "question_word"), ("link in bio",)),
        },
        required_beat_sequence=("hook", "claim", "proof", "cta"),
        additional_forbidden=("thread", "unpopular opinion", "hear me out", "let that sink in"),
        format_rules=(
            "First line must be complete thought, not teaser",
            "Line breaks are pacing - use intentionally",
            "Close with implication or invitation, not generic CTA",
        ),
    ),
    "article": CopyTypeRules(
        type="article",
        description="Blog posts, essays, long-form content",
        max_beats=8,
        max_total_words=800,
        target_words=600,
        max_sentence_words=22,
        max_adjectives_per_noun=2,
        specific_detail_every_n_sentences=3,
        beat_structures={
            "hook": BeatRules(25, ("specific_noun",), ("noun", "verb", "pronoun")),
            "nutgraf": BeatRules(40, ("specific_noun",), ("noun", "verb")),
            "claim": BeatRules(30, ("specific_noun",), ("noun", "verb")),
            "proof": BeatRules(50, ("number", "proper_noun"), ("noun", "verb")),
            "kicker": BeatRules(20, (), ("noun", "verb", "pronoun")),
        },
        required_beat_sequence=("hook", "nutgraf", "claim", "proof", "kicker"),
        format_rules=(
            "Nut graf in first 2 paragraphs",
            "Subheads every 250-300 words",
            "Each section must have clear thesis",
        ),
    ),
    "sales_page": CopyTypeRules(
        type="sales_page",
        description="Long-form sales letters, VSL scripts",
        max_beats=7,
        max_total_words=500,
        target_words=400,
        max_sentence_words=18,
        max_adjectives_per_noun=1,
        specific_detail_every_n_sentences=2,
        beat_structures={
            "hook": BeatRules(20, ("specific_noun",), ("noun", "verb", "question_word")),
            "problem": BeatRules(40, ("specific_noun",), ("noun", "verb")),
            "solution": BeatRules(40, ("specific_noun", "number"), ("noun", "verb")),
            "proof": BeatRules(50, ("number", "proper_noun"), ("noun", "verb")),
            "objection": BeatRules(30, (), ("noun", "verb", "question_word")),
            "cta": BeatRules(15, ("imperative",), ("imperative", "verb")),
        },
        required_beat_sequence=("hook", "problem", "solution", "proof", "objection", "cta"),
        format_rules=(
            "Headline stack at top",
            "Proof blocks clearly separated",
            "Each claim followed by proof within 2 sentences",
        ),
    ),
}

DEFAULT_COPY_TYPE = "website"


def get_copy_type_rules(copy_type: str) -> CopyTypeRules:
    """Get rules for a copy type, falling back to website rules."""
    return COPY_TYPE_RULES.get(copy_type, COPY_TYPE_RULES[DEFAULT_COPY_TYPE])


def get_all_forbidden_terms(copy_type: str) -> list[str]:
    """Universal + copy-type forbidden terms."""
    rules = get_copy_type_rules(copy_type)
    return [*UNIVERSAL_FORBIDDEN, *rules.additional_forbidden]


def compile_patterns(patterns: list[str]) -> list[re.Pattern]:
    """Compile a regex denylist, case-insensitive. Invalid entries are logged and skipped."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            logger.warning(f"Skipping invalid forbidden pattern {pattern!r}: {e}")
    return compiled
