"""Line-based three-way merge (diff3) built on difflib.

Both sides are diffed against the common ancestor. Regions where both sides
still match the ancestor are stable; between them, a region changed by only
one side takes that side, identical changes are taken once, and anything else
is a conflict.
"""
from difflib import SequenceMatcher


def _intersect(ra: tuple[int, int], rb: tuple[int, int]) -> tuple[int, int] | None:
    start = max(ra[0], rb[0])
    end = min(ra[1], rb[1])
    return (start, end) if start < end else None


def _sync_regions(base: list[str], mine: list[str], theirs: list[str]) -> list[tuple[int, ...]]:
    """(base_start, base_end, mine_start, mine_end, theirs_start, theirs_end) per stable region."""
    mine_blocks = SequenceMatcher(None, base, mine, autojunk=False).get_matching_blocks()
    theirs_blocks = SequenceMatcher(None, base, theirs, autojunk=False).get_matching_blocks()

    regions = []
    i = j = 0
    while i < len(mine_blocks) and j < len(theirs_blocks):
        m_base, m_pos, m_len = mine_blocks[i]
        t_base, t_pos, t_len = theirs_blocks[j]

        overlap = _intersect((m_base, m_base + m_len), (t_base, t_base + t_len))
        if overlap:
            start, end = overlap
            m_start = m_pos + (start - m_base)
            t_start = t_pos + (start - t_base)
            regions.append((start, end, m_start, m_start + end - start, t_start, t_start + end - start))

        if m_base + m_len < t_base + t_len:
            i += 1
        else:
            j += 1

    # Sentinel so the tail after the last stable region is merged too
    regions.append((len(base), len(base), len(mine), len(mine), len(theirs), len(theirs)))
    return regions


def merge_lines(base: list[str], mine: list[str], theirs: list[str]) -> list[str] | None:
    merged: list[str] = []
    z = m = t = 0
    for base_start, base_end, mine_start, mine_end, theirs_start, theirs_end in _sync_regions(base, mine, theirs):
        base_chunk = base[z:base_start]
        mine_chunk = mine[m:mine_start]
        theirs_chunk = theirs[t:theirs_start]

        if mine_chunk or theirs_chunk or base_chunk:
            if mine_chunk == theirs_chunk or theirs_chunk == base_chunk:
                merged.extend(mine_chunk)
            elif mine_chunk == base_chunk:
                merged.extend(theirs_chunk)
            else:
                return None

        merged.extend(base[base_start:base_end])
        z, m, t = base_end, mine_end, theirs_end

    return merged


def merge3(base: str, mine: str, theirs: str) -> str | None:
    """Merge `mine` and `theirs` (both derived from `base`); None on conflict."""
    # A trailing newline on every side keeps "last line changed" from
    # looking different from "line appended after the last line".
    split = [(text + "\n").splitlines(keepends=True) for text in (base, mine, theirs)]
    merged = merge_lines(*split)
    if merged is None:
        return None
    result = "".join(merged)
    return result[:-1] if result.endswith("\n") else result
