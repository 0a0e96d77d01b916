from typing import List


def chunk_text(text: str, max_words_per_chunk: int) -> List[str]:
    """
    Split text into chunks of at most ``max_words_per_chunk`` words.

    Words are whitespace-delimited and never split; each chunk joins its
    words with a single space. Empty or whitespace-only text yields no chunks.
    """
    if max_words_per_chunk < 1:
        raise ValueError("max_words_per_chunk must be at least 1")

    words = text.split()
    return [
        " ".join(words[i:i + max_words_per_chunk])
        for i in range(0, len(words), max_words_per_chunk)
    ]


def truncate_words(text: str, max_words: int) -> str:
    """Keep only the first ``max_words`` words of text (unchanged if shorter)"""
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def clean_markdown_code_blocks(text: str) -> str:
    """Remove markdown code fences that models wrap around JSON responses"""
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()
