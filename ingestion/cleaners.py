import re
import unicodedata

_WORD_MARKERS = re.compile(r"\[(?:bookmark|hyperlink|comment):\s*[^\]]+\]", re.IGNORECASE)


def normalize_text(s: str) -> str:
    s = unicodedata.normalize("NFKC", s)
    s = s.replace("\u00a0", " ")
    s = re.sub(r"[ \t]+", " ", s)
    s = re.sub(r"[ \t]+\n", "\n", s)
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip()


def clean_extracted_text(text: str) -> str:
    """
    Clean text coming back from Tika: drop Word bookmark/hyperlink/comment
    markers and normalize whitespace line by line, keeping paragraph breaks.
    """
    cleaned = _WORD_MARKERS.sub("", text)
    # collapse newlines before touching spaces so paragraph structure survives
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    cleaned = "\n".join(re.sub(r"\s+", " ", line.strip()) for line in cleaned.split("\n"))
    return cleaned.strip()
