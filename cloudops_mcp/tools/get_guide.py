from pydantic import BaseModel

from cloudops_mcp.resources.guide import SECTIONS


class GetGuideOutput(BaseModel):
    section: str
    title: str
    content: str
    available_sections: list[str]


async def get_guide(section: str) -> GetGuideOutput:
    """
    Get guide sections for working with Google Cloud long-running operations.

    TL;DR:
    - PURPOSE: Documentation for the operation lifecycle and the tools built on it
    - SECTIONS: operations, workflow, cleanup, errors

    USAGE:
    - Operation lifecycle and waiting: get_guide(section="operations")
    - Replicated disk workflow: get_guide(section="workflow")
    - Tearing resources down in order: get_guide(section="cleanup")
    - Error handling: get_guide(section="errors")

    RETURNS: section, title, content, available_sections

    RESOURCE ALTERNATIVE:
    - gcp://guide/{section} - Same content as MCP resource (if your agent supports resources)
    """

    available = sorted(SECTIONS.keys())

    if section not in SECTIONS:
        raise ValueError(f"Unknown guide section '{section}'. Available sections: {', '.join(available)}")

    content = SECTIONS[section]
    return GetGuideOutput(
        section=section,
        title=content.splitlines()[0].lstrip("# "),
        content=content,
        available_sections=available,
    )
