from __future__ import annotations

__all__ = ("TokenBuffer",)


class TokenBuffer:
    """Write-only text sink.

    Fragments are kept on a stack whose sizes decrease from bottom to top: a
    new fragment is merged into its predecessor as long as it's at least as
    large. Every character gets copied a logarithmic number of times which
    keeps building large documents out of tiny tokens linear-ish.

      >>> buf = TokenBuffer()
      >>> for token in ("ref", "[", "1", "]"):
      ...     _ = buf.write(token)
      >>> buf.getvalue()
      'ref[1]'
    """

    __slots__ = ("_parts",)

    _parts: list[str]

    def __init__(self) -> None:
        self._parts = []

    def write(self, fragment: str) -> int:
        parts = self._parts
        parts.append(fragment)
        while len(parts) > 1 and len(parts[-2]) <= len(parts[-1]):
            last = parts.pop()
            parts[-1] += last
        return len(fragment)

    def getvalue(self) -> str:
        parts = self._parts
        if len(parts) > 1:
            parts[:] = ["".join(parts)]
        return parts[0] if parts else ""
