"""ToolResult: the single response shape every tool invocation produces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mcp.types import TextContent


@dataclass
class ToolResult:
    """One or more content blocks plus an error flag.

    An error result always carries a human-readable diagnostic in its text
    block, never partial data.
    """

    content: list[TextContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(type="text", text=text)])

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(type="text", text=text)], is_error=True)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize in MCP ``tools/call`` result shape.

        ``isError`` is only present on error results.
        """
        data: dict[str, Any] = {
            "content": [block.model_dump(mode="json", by_alias=True, exclude_none=True) for block in self.content]
        }
        if self.is_error:
            data["isError"] = True
        return data
