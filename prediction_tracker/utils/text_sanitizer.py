import html
import re


# Script and SQL-injection fragments rejected in free text
DANGEROUS_PATTERNS = [
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"union.*select", re.IGNORECASE | re.DOTALL),
    re.compile(r"drop.*table", re.IGNORECASE | re.DOTALL),
    re.compile(r"delete.*from", re.IGNORECASE | re.DOTALL),
    re.compile(r"insert.*into", re.IGNORECASE | re.DOTALL),
    re.compile(r"update.*set", re.IGNORECASE | re.DOTALL),
    re.compile(r"--"),
    re.compile(r"/\*.*\*/", re.DOTALL),
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"exec\(", re.IGNORECASE),
]


def normalize_text(text: str) -> str:
    """Normalize text by standardizing line breaks and whitespace.

    Converts different line break formats to standard newlines, collapses
    runs of spaces/tabs and reduces excessive blank lines.

    Args:
        text: Raw text to normalize.

    Returns:
        str: Normalized and trimmed text.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def contains_dangerous_content(text: str) -> bool:
    """Return True when text matches any script/SQL-injection pattern."""
    return any(pattern.search(text) for pattern in DANGEROUS_PATTERNS)


def sanitize_text(text: str) -> str:
    """Normalize text and escape HTML entities for safe storage and display.

    Examples:
        >>> sanitize_text("  Tom & Jerry <b>win</b>  ")
        'Tom &amp; Jerry &lt;b&gt;win&lt;/b&gt;'
    """
    return html.escape(normalize_text(text), quote=True)
