"""Page titles: namespace number + normalized text."""
from dataclasses import dataclass

NAMESPACES: dict[int, str] = {
    0: "",
    1: "Talk",
    2: "User",
    3: "User talk",
    4: "Project",
    5: "Project talk",
    6: "File",
    7: "File talk",
    10: "Template",
    11: "Template talk",
    14: "Category",
    15: "Category talk",
}

NS_MAIN = 0
NS_USER = 2
NS_FILE = 6

_NAMESPACE_IDS = {name.lower().replace(" ", "_"): ns for ns, name in NAMESPACES.items() if name}

# '[' and ']' are also what keeps preload ids and usernames apart.
ILLEGAL_CHARS = frozenset("#<>[]|{}")


def _normalize(text: str) -> str:
    text = "_".join(text.replace("_", " ").split())
    if not text:
        return text
    return text[0].upper() + text[1:]


@dataclass(frozen=True)
class Title:
    namespace: int
    dbkey: str

    @classmethod
    def make(cls, namespace: int, text: str) -> "Title":
        dbkey = _normalize(text)
        if not dbkey or ILLEGAL_CHARS.intersection(dbkey):
            raise ValueError(f"Invalid page title: {text!r}")
        if namespace not in NAMESPACES:
            raise ValueError(f"Unknown namespace: {namespace}")
        return cls(namespace, dbkey)

    @classmethod
    def parse(cls, full_text: str) -> "Title":
        """Parse 'Talk:Foo bar' into Title(1, 'Foo_bar')."""
        prefix, sep, rest = full_text.partition(":")
        if sep:
            ns = _NAMESPACE_IDS.get(prefix.strip().lower().replace(" ", "_"))
            if ns is not None:
                return cls.make(ns, rest)
        return cls.make(NS_MAIN, full_text)

    @property
    def text(self) -> str:
        return self.dbkey.replace("_", " ")

    @property
    def prefixed_text(self) -> str:
        prefix = NAMESPACES[self.namespace]
        return f"{prefix}:{self.text}" if prefix else self.text

    def __str__(self) -> str:
        return self.prefixed_text


def user_page(username: str) -> Title | None:
    """User:<name>, or None when the name can't be a page title."""
    try:
        return Title.make(NS_USER, username)
    except ValueError:
        return None
