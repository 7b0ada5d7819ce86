"""Section handling for wikitext (== Heading == splits)."""
import re

_HEADING_RE = re.compile(r"^(={1,6})(.+?)\1[ \t]*$", re.MULTILINE)


def _section_bounds(text: str, index: int) -> tuple[int, int] | None:
    """(start, end) offsets of section `index`; section 0 is the lead."""
    headings = [(m.start(), len(m.group(1))) for m in _HEADING_RE.finditer(text)]
    if index == 0:
        return 0, headings[0][0] if headings else len(text)
    if index < 0 or index > len(headings):
        return None

    start, level = headings[index - 1]
    end = len(text)
    for pos, lvl in headings[index:]:
        # Subsections belong to the section
        if lvl <= level:
            end = pos
            break
    return start, end


def get_section(text: str, index: int) -> str | None:
    bounds = _section_bounds(text, index)
    if bounds is None:
        return None
    start, end = bounds
    return text[start:end].rstrip("\n")


def replace_section(text: str, index: int, new_text: str) -> str | None:
    bounds = _section_bounds(text, index)
    if bounds is None:
        return None
    start, end = bounds
    tail = text[end:].lstrip("\n")
    result = text[:start] + new_text.rstrip("\n")
    if tail:
        result += "\n\n" + tail
    return result
