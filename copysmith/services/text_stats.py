"""Text statistics used by the draft validator.

Sentence boundaries and parts of speech come from spaCy's small English
pipeline. Word counts, digits and quotes stay on plain regexes so that
length budgets match what a reader would count.
"""

import logging
import re
import subprocess
import sys
from collections.abc import Sequence
from functools import lru_cache

import spacy
from spacy.language import Language
from spacy.tokens import Span, Token

logger = logging.getLogger(__name__)

SPACY_MODEL = "en_core_web_sm"

WORD_RE = re.compile(r"\d+(?:[.,]\d+)*%?|[A-Za-z][A-Za-z0-9'’\-]*")
LINE_SPLIT_RE = re.compile(r"\n+")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
QUOTED_RE = re.compile(r"[\"“]([^\"“”]+)[\"”]")
NUMBER_RE = re.compile(r"\d")

NOUN_POS = frozenset({"NOUN", "PROPN"})
VERB_POS = frozenset({"VERB", "AUX"})
QUESTION_TAGS = frozenset({"WDT", "WP", "WP$", "WRB"})
SUBJECT_DEPS = frozenset({"nsubj", "nsubjpass", "expl"})

# Sentence-initial calls to action that the small model often tags as nouns
CTA_VERBS = frozenset({
    "book", "buy", "call", "claim", "grab", "join", "order", "reply",
    "reserve", "schedule", "shop", "sign", "start", "try", "upgrade",
})


@lru_cache(maxsize=None)
def load_nlp(model: str = SPACY_MODEL) -> Language:
    """Load a spaCy pipeline once per process, downloading it on first use."""
    try:
        return spacy.load(model)
    except OSError:
        logger.warning(f"spaCy model {model} not installed, downloading it")
        subprocess.run([sys.executable, "-m", "spacy", "download", model], check=True)
        return spacy.load(model)


def normalize(text: str) -> str:
    """Fold curly apostrophes so term lists match."""
    return text.replace("’", "'")


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def sentences(nlp: Language, text: str) -> list[Span]:
    """Sentences in reading order.

    Every line break ends a sentence, so headings and bullet lines count as
    sentences of their own. Within a line, spaCy's parser decides.
    """
    lines = [line.strip() for line in LINE_SPLIT_RE.split(text) if line.strip()]
    return [sent for doc in nlp.pipe(lines) for sent in doc.sents if sent.text.strip()]


def split_sentences(nlp: Language, text: str) -> list[str]:
    return [sent.text.strip() for sent in sentences(nlp, text)]


def words(text: str) -> list[str]:
    return WORD_RE.findall(text)


def count_words(text: str) -> int:
    return len(words(text))


def base_word(word: str) -> str:
    """Lowercase, drop contractions: "We're" -> "we", "Here's" -> "here"."""
    word = normalize(word).lower()
    return word.split("'", 1)[0]


def adjective_runs(sentence: Span) -> list[list[str]]:
    """Runs of consecutive ADJ tokens that end directly before a noun.

    Adjectives may be separated by commas or a coordinating conjunction. A
    run that is not followed by a NOUN or PROPN is predicative and skipped.
    """
    runs: list[list[str]] = []
    run: list[Token] = []
    for token in sentence:
        if token.pos_ == "ADJ":
            run.append(token)
            continue
        if run and (token.text == "," or token.pos_ == "CCONJ"):
            continue
        if run and token.pos_ in NOUN_POS:
            runs.append([t.text for t in run])
        run = []
    return runs


def has_number(text: str) -> bool:
    return bool(NUMBER_RE.search(text))


def proper_nouns(sentence: Span) -> list[str]:
    return [token.text for token in sentence if token.pos_ == "PROPN"]


def has_quoted_fact(text: str) -> bool:
    return any(count_words(q) >= 2 for q in QUOTED_RE.findall(text))


def has_specific_detail(window: Sequence[Span]) -> bool:
    """Number, proper noun or quoted fact anywhere in the sentences."""
    joined = " ".join(sent.text for sent in window)
    if has_number(joined) or has_quoted_fact(joined):
        return True
    return any(proper_nouns(sent) for sent in window)


def _opener(sentence: Span) -> Token | None:
    for token in sentence:
        if not (token.is_punct or token.is_space):
            return token
    return None


def _is_imperative(token: Token) -> bool:
    if token.tag_ == "VB" and not any(child.dep_ in SUBJECT_DEPS for child in token.children):
        return True
    return token.lower_ in CTA_VERBS and token.pos_ in (VERB_POS | NOUN_POS)


def first_word_types(sentence: Span) -> set[str]:
    """Classify the opening word of a sentence from its tag.

    Returns a set because one word can play several roles
    ("Start" is both imperative and verb).
    """
    token = _opener(sentence)
    if token is None:
        return set()
    is_question = sentence.text.rstrip().endswith("?")

    if token.tag_ in QUESTION_TAGS or (is_question and token.pos_ == "AUX"):
        return {"question_word"}
    if token.pos_ == "PRON":
        return {"pronoun"}
    if _is_imperative(token):
        return {"imperative", "verb"}
    if token.pos_ in VERB_POS:
        return {"verb"}
    if token.pos_ in NOUN_POS or token.pos_ == "NUM":
        return {"noun"}
    if token.pos_ in ("DET", "ADJ") and token.head.pos_ in (NOUN_POS | {"PRON", "NUM"}):
        return {"noun"}           # opens a noun phrase
    return set()


def has_imperative(sents: Sequence[Span]) -> bool:
    return any("imperative" in first_word_types(sent) for sent in sents)


def has_element(sents: Sequence[Span], element: str) -> bool:
    """Check one required structural element in a beat's sentences."""
    text = " ".join(sent.text for sent in sents)
    if element == "number":
        return has_number(text)
    if element == "proper_noun":
        return any(proper_nouns(sent) for sent in sents)
    if element == "specific_noun":
        return has_specific_detail(sents)
    if element == "imperative":
        return has_imperative(sents)
    if element == "question":
        return "?" in text
    return False
