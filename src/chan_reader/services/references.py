import re

# Quote markers as they appear in comments: ">>123" or, still escaped, "&gt;&gt;123".
REFERENCE_RE = re.compile(r"(?:>>|&gt;&gt;)(?P<id>[0-9]+)")


def extract_references(text: str | None, own_id: int | None = None) -> list[int]:
    if not text:
        return []

    seen: set[int] = set()
    references: list[int] = []
    for match in REFERENCE_RE.finditer(text):
        post_id = int(match.group("id"))
        if post_id == own_id or post_id in seen:
            continue
        seen.add(post_id)
        references.append(post_id)
    return references
