from __future__ import annotations


def sjis(text: str) -> bytes:
    return text.encode("cp932")
