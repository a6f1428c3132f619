"""Mermaid flowchart text for a stored workflow."""

from __future__ import annotations

import base64
import logging
import re
import zlib
from typing import List
from urllib.parse import quote

from models.workflow_record import WorkflowRecord

LOGGER = logging.getLogger(__name__)

MERMAID_LIVE_URL = "https://mermaid.live/edit"

CLASS_STYLES = (
    "classDef start fill:#dfd,stroke:#393,stroke-width:1px",
    "classDef finish fill:#fdd,stroke:#933,stroke-width:1px",
    "classDef pain fill:#ffeecc,stroke:#f90,stroke-width:1px,stroke-dasharray: 5 5",
    "classDef person fill:#eff,stroke:#699,stroke-width:1px",
    "classDef system fill:#fef,stroke:#969,stroke-width:1px",
)


def sanitize_mermaid_text(text: str | None) -> str:
    """Escape characters that would break Mermaid node labels."""
    if not text:
        return ""
    return (
        text.replace('"', "&quot;")
        .replace("'", "&apos;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\n", " ")
    )


class WorkflowDiagramBuilder:
    """Build a `flowchart TD` from start event through people and systems to end event."""

    def build(self, workflow: WorkflowRecord) -> str:
        """Return Mermaid source for the workflow.

        Args:
            workflow: A stored workflow record.
        """
        lines: List[str] = ["flowchart TD"]
        lines.append(f'    title["{sanitize_mermaid_text(workflow.title)}"]')
        lines.append("")
        lines.append(f'    start("🟢 {sanitize_mermaid_text(workflow.start_event)}")')
        lines.append(f'    finish("🏁 {sanitize_mermaid_text(workflow.end_event)}")')
        lines.append("")

        actors: List[str] = []
        for index, person in enumerate(workflow.people):
            node = f"person{index}"
            lines.append(f'    {node}["👤 {sanitize_mermaid_text(person)}"]')
            actors.append(node)
        for index, system in enumerate(workflow.systems):
            node = f"system{index}"
            lines.append(f'    {node}["💻 {sanitize_mermaid_text(system)}"]')
            actors.append(node)
        if actors:
            lines.append("")

        lines.append("    " + " --> ".join(["start", *actors, "finish"]))
        lines.append("")

        if workflow.pain_point:
            lines.append(f'    pain[/"⚠️ Pain Point: {sanitize_mermaid_text(workflow.pain_point)}"/]')
            lines.append("    pain -.-> finish")
            lines.append("")

        lines.extend(f"    {style}" for style in CLASS_STYLES)
        lines.append("")
        lines.append("    class start start")
        lines.append("    class finish finish")
        if workflow.pain_point:
            lines.append("    class pain pain")
        lines.extend(f"    class person{index} person" for index in range(len(workflow.people)))
        lines.extend(f"    class system{index} system" for index in range(len(workflow.systems)))
        return "\n".join(lines) + "\n"


def mermaid_live_link(code: str) -> str:
    """Return a Mermaid Live Editor URL embedding the deflated diagram source."""
    clean = re.sub(r"^```mermaid\s*", "", code.strip(), flags=re.IGNORECASE)
    clean = re.sub(r"```$", "", clean).strip()
    compressed = zlib.compress(clean.encode("utf-8"), 9)
    encoded = base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")
    LOGGER.debug("Built Mermaid Live link for %d chars of source", len(clean))
    return f"{MERMAID_LIVE_URL}#pako:{quote(encoded, safe='')}"
