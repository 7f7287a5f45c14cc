import re

_LINE_BREAK = "<br>"
_TAG_RE = re.compile(r"</?[A-Za-z][^<>]*>")
_ENTITY_RE = re.compile(r"&(?:#(?P<dec>[0-9]+)|#[xX](?P<hex>[0-9a-fA-F]+)|(?P<name>[A-Za-z]+));")

NAMED_ENTITIES = {
    "quot": '"',
    "amp": "&",
    "apos": "'",
    "gt": ">",
    "lt": "<",
    "nbsp": " ",
    "trade": "™",
    "copy": "©",
    "reg": "®",
}


def _code_point(value: int) -> str | None:
    if value <= 0 or value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        return None
    return chr(value)


def _replace_entity(match: re.Match) -> str:
    if match.group("name"):
        return NAMED_ENTITIES.get(match.group("name"), match.group(0))

    if match.group("dec"):
        decoded = _code_point(int(match.group("dec")))
    else:
        decoded = _code_point(int(match.group("hex"), 16))
    return decoded if decoded is not None else match.group(0)


def decode_entities(text: str) -> str:
    # One left-to-right pass, so "&amp;gt;" becomes "&gt;" and not ">".
    return _ENTITY_RE.sub(_replace_entity, text or "")


def clean_text(raw_text: str | None) -> str:
    if not raw_text:
        return ""

    text = raw_text.replace(_LINE_BREAK, "\n")
    text = _TAG_RE.sub("", text)
    return decode_entities(text).strip()
