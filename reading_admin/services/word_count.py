"""
Content metrics for stories: word count, reading time, reading level and a
simple readability score.

Accepts plain text or HTML. Letters of any script form words, so Arabic and
English stories are measured the same way.
"""
import bisect
import math
import re
from typing import List, Optional
from bs4 import BeautifulSoup
from reading_admin.schemas.story import ContentAnalysis, ContentProgress

# Words per minute
READING_SPEEDS = {
    "slow": 200,
    "average": 250,
    "fast": 300,
}

# Inclusive word-count upper bounds of beginner and intermediate
READING_LEVEL_BOUNDS = (500, 1500)
READING_LEVELS = ("beginner", "intermediate", "advanced")

BLOCK_TAGS = ["p", "div", "li", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]

WORD_PATTERN = re.compile(r"[^\W\d_]+(?:['’-][^\W\d_]+)*")
SENTENCE_END = re.compile(r"[.!?؟]+")
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def extract_text(content: Optional[str]) -> str:
    """Visible text, with block elements separated by blank lines."""
    if not content:
        return ""
    soup = BeautifulSoup(content, "html.parser")
    for element in soup.find_all(["script", "style"]):
        element.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.append("\n\n")
    return soup.get_text().strip()


def find_words(text: str) -> List[str]:
    return WORD_PATTERN.findall(text)


def count_words(content: Optional[str]) -> int:
    return len(find_words(extract_text(content)))


def count_sentences(text: str) -> int:
    return sum(1 for part in SENTENCE_END.split(text) if part.strip())


def count_paragraphs(text: str) -> int:
    return sum(1 for part in PARAGRAPH_BREAK.split(text) if part.strip())


def estimate_reading_time(word_count: int, speed: str = "average") -> int:
    wpm = READING_SPEEDS.get(speed, READING_SPEEDS["average"])
    return max(1, math.ceil(word_count / wpm))


def calculate_complexity_score(
    avg_sentence_length: float,
    avg_word_length: float,
    paragraph_density: float,
    unique_words_ratio: float,
) -> float:
    """0–1; long sentences, long words, dense paragraphs and varied vocabulary raise it."""
    score = 0.0

    if avg_sentence_length > 20:
        score += 0.3
    elif avg_sentence_length > 15:
        score += 0.2
    elif avg_sentence_length > 10:
        score += 0.1

    if avg_word_length > 6:
        score += 0.2
    elif avg_word_length > 5:
        score += 0.1

    if paragraph_density > 100:
        score += 0.2
    elif paragraph_density > 75:
        score += 0.1

    if unique_words_ratio > 0.8:
        score += 0.3
    elif unique_words_ratio > 0.6:
        score += 0.2
    elif unique_words_ratio > 0.4:
        score += 0.1

    return min(1.0, round(score, 2))


def determine_reading_level(word_count: int, complexity_score: float) -> str:
    # Length sets the base level, complexity moves it one step either way
    index = bisect.bisect_left(READING_LEVEL_BOUNDS, word_count)
    if complexity_score > 0.7:
        index = min(index + 1, len(READING_LEVELS) - 1)
    elif complexity_score < 0.3:
        index = max(index - 1, 0)
    return READING_LEVELS[index]


def calculate_readability_score(word_count: int, sentence_count: int, complexity_score: float) -> float:
    if word_count == 0:
        return 0.0
    words_per_sentence = word_count / max(sentence_count, 1)
    score = 100 - 1.015 * words_per_sentence - 84.6 * complexity_score
    return max(0.0, min(100.0, round(score, 1)))


def calculate_content_progress(word_count: int, target_words: int) -> ContentProgress:
    return ContentProgress(
        current_words=word_count,
        target_words=target_words,
        progress_percentage=min(100.0, round(word_count / target_words * 100, 1)),
        words_remaining=max(0, target_words - word_count),
        is_target_met=word_count >= target_words,
    )


def analyze_content(content: Optional[str]) -> ContentAnalysis:
    text = extract_text(content)
    words = find_words(text)
    if not words:
        return ContentAnalysis()

    flat = " ".join(text.split())
    word_count = len(words)
    sentence_count = count_sentences(flat)
    paragraph_count = count_paragraphs(text)

    avg_sentence = round(word_count / sentence_count, 1) if sentence_count else 0.0
    avg_paragraph = round(word_count / paragraph_count, 1) if paragraph_count else 0.0
    avg_word = round(len(flat) / word_count, 1)
    unique_count = len({word.lower() for word in words})
    unique_ratio = round(unique_count / word_count, 2)

    complexity = calculate_complexity_score(avg_sentence, avg_word, avg_paragraph, unique_ratio)

    return ContentAnalysis(
        word_count=word_count,
        character_count=len(flat),
        paragraph_count=paragraph_count,
        sentence_count=sentence_count,
        reading_level=determine_reading_level(word_count, complexity),
        estimated_reading_time=estimate_reading_time(word_count),
        average_words_per_sentence=avg_sentence,
        average_words_per_paragraph=avg_paragraph,
        average_characters_per_word=avg_word,
        unique_words_count=unique_count,
        unique_words_ratio=unique_ratio,
        complexity_score=complexity,
        readability_score=calculate_readability_score(word_count, sentence_count, complexity),
    )


def apply_content_metrics(story) -> ContentAnalysis:
    """Refresh a story's stored word count, reading time and reading level from its content."""
    analysis = analyze_content(story.content)
    story.word_count = analysis.word_count
    story.reading_time_minutes = analysis.estimated_reading_time
    story.reading_level = analysis.reading_level
    return analysis
