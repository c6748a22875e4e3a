import re

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_EXCESS_SPACES = re.compile(r"[ \t]{2,}")

_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_FENCE_OPEN = re.compile(r"```\w*\n?")
_FENCE_CLOSE = re.compile(r"```$")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_HEADING = re.compile(r"^#+\s", re.MULTILINE)
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC = re.compile(r"\*([^*]+)\*")
_UNDERSCORE_BOLD = re.compile(r"__([^_]+)__")
_UNDERSCORE_ITALIC = re.compile(r"_([^_]+)_")
_BULLET = re.compile(r"^[-*+]\s", re.MULTILINE)
_NUMBERED = re.compile(r"^\d+\.\s", re.MULTILINE)


def collapse_whitespace(text: str) -> str:
    """Collapses 3+ newlines to a paragraph break and runs of spaces to one, then trims."""
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _EXCESS_SPACES.sub(" ", text)
    return text.strip()


def clean_plain_text(text: str) -> str:
    return collapse_whitespace(text.replace("\r\n", "\n"))


def _tag_code_block(match: re.Match) -> str:
    code = _FENCE_OPEN.sub("", match.group(0), count=1)
    code = _FENCE_CLOSE.sub("", code)
    return f"\n[Code Block]\n{code}\n"


def clean_markdown(text: str) -> str:
    """
    Reduces markdown to readable plain text.
    Order matters: code fences first so their bodies are not touched by the
    inline rules, images before links so the image alt text survives.
    """
    text = _CODE_FENCE.sub(_tag_code_block, text)
    text = _IMAGE.sub(r"[Image: \1]", text)
    text = _LINK.sub(r"\1", text)
    text = _HEADING.sub("", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _UNDERSCORE_BOLD.sub(r"\1", text)
    text = _UNDERSCORE_ITALIC.sub(r"\1", text)
    text = _BULLET.sub("• ", text)
    text = _NUMBERED.sub("• ", text)
    return text.strip()
