from __future__ import annotations

from enum import Enum


class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class FormatCommand(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"

    @property
    def tag(self) -> str:
        return _FORMAT_TAGS[self]


_FORMAT_TAGS = {
    FormatCommand.BOLD: "b",
    FormatCommand.ITALIC: "i",
    FormatCommand.UNDERLINE: "u",
    FormatCommand.STRIKETHROUGH: "s",
}
