"""Reduce Azure DevOps work item JSON to a flat, token-efficient shape.

The transformation is lossy on purpose: noise keys and audit fields are
dropped, field names lose their namespaces, identities become display
strings and rich text becomes normalized plain text. Applying it to its own
output changes nothing.
"""
import re
from typing import Any

from bs4 import BeautifulSoup

# Keys of no value to a text consumer, removed at every object level
NOISE_KEYS = ("url", "_links", "descriptor", "imageUrl", "avatar")

FIELD_PREFIXES = (
    "System.",
    "Microsoft.VSTS.Common.",
    "Microsoft.VSTS.Scheduling.",
    "Microsoft.VSTS.CMMI.",
)

# Operational/audit fields dropped after prefix stripping
DROPPED_FIELDS = frozenset({
    "ActivatedBy",
    "ActivatedDate",
    "BoardColumnDone",
    "ClosedBy",
    "ClosedDate",
    "Column.Done",
    "CommentCount",
    "Reason",
    "ResolvedBy",
    "ResolvedDate",
    "State",
    "StateChangeDate",
})

RENAMED_FIELDS = {
    "BoardColumn": "Column",
    "BoardLane": "Lane",
    "AcceptanceCriteria": "Acceptance",
    "TeamProject": "Project",
    "WorkItemType": "Type",
    "IterationPath": "Iteration",
}

RICH_TEXT_FIELDS = frozenset({"Acceptance", "Description", "Justification"})

RE_SPACES = re.compile(r" +")
RE_NEWLINES = re.compile(r"\n+")
RE_LEADING_WS = re.compile(r"\n[ ]+")
RE_TRAILING_WS = re.compile(r"[ ]+\n")
RE_DASHES = re.compile(r"-{3,}\n")
RE_IMAGE = re.compile(r"\[image\]", re.IGNORECASE)

_BLOCK_TAGS = [
    "p", "div", "li", "tr", "ul", "ol", "table", "blockquote", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6",
]


def html_to_text(html: str) -> str:
    """Render an HTML fragment as plain text with line breaks at block boundaries."""
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img"):
        img.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for hr in soup.find_all("hr"):
        hr.replace_with("\n---\n")
    for li in soup.find_all("li"):
        li.insert(0, "* ")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")
    return soup.get_text().replace("\xa0", " ")


def normalize_text(text: str) -> str:
    """Collapse whitespace, separator lines and image placeholders in plain text."""
    text = text.replace("\r", "\n")
    text = text.replace("\t", " ")
    text = text.replace("─", "-")
    text = RE_SPACES.sub(" ", text)
    text = RE_NEWLINES.sub("\n", text)
    text = RE_LEADING_WS.sub("\n", text)
    text = RE_TRAILING_WS.sub("\n", text)
    text = RE_DASHES.sub("---\n", text)
    text = RE_IMAGE.sub("", text)
    return text.strip()


def simplify_identity(value: Any) -> Any:
    """Collapse an identity reference to ``"Name <unique>"`` (or just ``"Name"``)."""
    if isinstance(value, dict) and isinstance(value.get("displayName"), str):
        name = value["displayName"]
        unique_name = value.get("uniqueName")
        if isinstance(unique_name, str) and unique_name:
            return f"{name} <{unique_name}>"
        return name
    return value


def simplify_field_name(key: str) -> str:
    """Strip well-known namespaces and resolve per-board Kanban field names."""
    for prefix in FIELD_PREFIXES:
        if key.startswith(prefix):
            return key[len(prefix):]
    if "_Kanban.Column.Done" in key:
        return "Column.Done"
    if "_Kanban.Column" in key:
        return "Column"
    if "_Kanban.Lane" in key:
        return "Lane"
    return key


def simplify_fields(fields: dict) -> dict:
    """Rename, filter and clean a work item's ``fields`` bag.

    When two source keys end up with the same name, the first one wins.
    """
    simplified = {}
    for key, value in fields.items():
        value = simplify_identity(value)

        name = simplify_field_name(key)
        if name in DROPPED_FIELDS:
            continue
        name = RENAMED_FIELDS.get(name, name)

        if name in RICH_TEXT_FIELDS and isinstance(value, str):
            value = normalize_text(html_to_text(value))
        elif name == "Tags" and isinstance(value, str):
            value = value.replace("; ", ";")
        elif name == "Type" and isinstance(value, str) and value:
            value = value[0]

        if name not in simplified:
            simplified[name] = value
    return simplified


def simplify_work_item_json(value: Any) -> Any:
    """Simplify a JSON tree in place and return it.

    Works on a single work item, a list of them, or any nested structure
    containing them. Flattened fields never overwrite keys already present on
    the parent object.
    """
    if isinstance(value, dict):
        for key in NOISE_KEYS:
            value.pop(key, None)

        fields = value.pop("fields", None)
        if isinstance(fields, dict):
            for key, field_value in simplify_fields(fields).items():
                value.setdefault(key, field_value)

        for key in value:
            value[key] = simplify_work_item_json(value[key])
    elif isinstance(value, list):
        for index, item in enumerate(value):
            value[index] = simplify_work_item_json(item)
    return value
