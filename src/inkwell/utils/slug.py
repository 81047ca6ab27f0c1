import re
import unicodedata

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(value: str, max_length: int = 200) -> str:
    """Lower-case ASCII slug: ``"Hello, World!"`` -> ``"hello-world"``."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_WORD.sub("", normalized.lower()).strip()
    slug = _SEPARATORS.sub("-", cleaned).strip("-")
    return slug[:max_length].rstrip("-")
