"""Pydantic models for Azure DevOps records and MCP tool arguments."""
import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidInputError


# Friendly tool argument -> Azure DevOps field reference name.
# Order matters: it is the order of the JSON-Patch operations sent on create/update.
FIELD_REFERENCE_NAMES: dict[str, str] = {
    "title": "System.Title",
    "description": "System.Description",
    "assigned_to": "System.AssignedTo",
    "area_path": "System.AreaPath",
    "iteration_path": "System.IterationPath",
    "state": "System.State",
    "board_column": "System.BoardColumn",
    "board_row": "System.BoardLane",
    "priority": "Microsoft.VSTS.Common.Priority",
    "severity": "Microsoft.VSTS.Common.Severity",
    "story_points": "Microsoft.VSTS.Scheduling.StoryPoints",
    "effort": "Microsoft.VSTS.Scheduling.Effort",
    "remaining_work": "Microsoft.VSTS.Scheduling.RemainingWork",
    "tags": "System.Tags",
    "activity": "Microsoft.VSTS.Common.Activity",
    "start_date": "Microsoft.VSTS.Scheduling.StartDate",
    "target_date": "Microsoft.VSTS.Scheduling.TargetDate",
    "acceptance_criteria": "Microsoft.VSTS.Common.AcceptanceCriteria",
    "repro_steps": "Microsoft.VSTS.TCM.ReproSteps",
}

LINK_TYPES: dict[str, str] = {
    "parent": "System.LinkTypes.Hierarchy-Forward",
    "child": "System.LinkTypes.Hierarchy-Reverse",
    "related": "System.LinkTypes.Related",
    "duplicate": "System.LinkTypes.Duplicate-Forward",
    "dependency": "System.LinkTypes.Dependency-Forward",
}


# Backend records

class Comment(BaseModel):
    """A work item comment as returned by the comments API."""

    id: int
    text: str = ""
    created_date: str = Field(..., alias="createdDate")
    created_by: Any = Field(None, alias="createdBy")  # identity reference

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class WorkItem(BaseModel):
    """A raw work item with its field bag and optionally attached comments."""

    id: int
    fields: dict[str, Any] = Field(default_factory=dict)
    url: Optional[str] = None
    comments: Optional[list[Comment]] = None

    def to_json(self) -> dict[str, Any]:
        """Plain JSON tree fed to the simplifier. Comments are omitted unless fetched."""
        data: dict[str, Any] = {"id": self.id, "fields": dict(self.fields), "url": self.url}
        if self.comments is not None:
            data["comments"] = [comment.to_json() for comment in self.comments]
        return data


class IterationAttributes(BaseModel):
    start_date: Optional[str] = Field(None, alias="startDate")
    finish_date: Optional[str] = Field(None, alias="finishDate")
    time_frame: Optional[str] = Field(None, alias="timeFrame")

    model_config = ConfigDict(populate_by_name=True)


class Iteration(BaseModel):
    """A team settings iteration (sprint)."""

    id: str
    name: str
    path: str = ""
    attributes: IterationAttributes = Field(default_factory=IterationAttributes)


# Filters

class FilterSpec(BaseModel):
    """Structured filter turned into a WIQL query by ``query.build_wiql``.

    Include and exclude collections may overlap; both conditions are emitted.
    """

    area_path: Optional[str] = Field(None, description="Area path, matched with UNDER (includes children)")
    iteration_path: Optional[str] = Field(None, description="Iteration path, matched with UNDER (includes children)")
    created_date_from: Optional[str] = None
    created_date_to: Optional[str] = None
    modified_date_from: Optional[str] = None
    modified_date_to: Optional[str] = None

    include_board_column: tuple[str, ...] = ()
    include_board_row: tuple[str, ...] = ()
    include_work_item_type: tuple[str, ...] = ()
    include_state: tuple[str, ...] = ()
    include_assigned_to: tuple[str, ...] = ()
    include_tags: tuple[str, ...] = ()

    exclude_board_column: tuple[str, ...] = ()
    exclude_board_row: tuple[str, ...] = ()
    exclude_work_item_type: tuple[str, ...] = ()
    exclude_state: tuple[str, ...] = ()
    exclude_assigned_to: tuple[str, ...] = ()
    exclude_tags: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="ignore")


# Tool arguments

class ScopedArgs(BaseModel):
    """Arguments shared by every project-scoped tool."""

    organization: str
    project: str

    model_config = ConfigDict(extra="ignore")

    @field_validator("organization", "project")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field cannot be empty")
        return value


class CommentsOption(BaseModel):
    include_latest_n_comments: Optional[int] = Field(
        None, ge=-1, description="Include the latest N comments; -1 for all comments"
    )


class GetWorkItemArgs(ScopedArgs, CommentsOption):
    id: int


class GetWorkItemsArgs(ScopedArgs, CommentsOption):
    ids: list[int] = Field(default_factory=list)


class QueryWorkItemsArgs(ScopedArgs, CommentsOption, FilterSpec):
    model_config = ConfigDict(frozen=True, extra="ignore")

    def filter_spec(self) -> FilterSpec:
        return FilterSpec(**self.model_dump(include=set(FilterSpec.model_fields)))


class WiqlQueryArgs(ScopedArgs, CommentsOption):
    query: str


class WorkItemFieldArgs(BaseModel):
    """Optional work item fields accepted by create and update."""

    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    area_path: Optional[str] = None
    iteration_path: Optional[str] = None
    state: Optional[str] = None
    board_column: Optional[str] = None
    board_row: Optional[str] = None
    priority: Optional[int] = None
    severity: Optional[str] = None
    story_points: Optional[float] = None
    effort: Optional[float] = None
    remaining_work: Optional[float] = None
    tags: Optional[str] = None
    activity: Optional[str] = None
    start_date: Optional[str] = None
    target_date: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    repro_steps: Optional[str] = None
    fields: Optional[str] = Field(None, description="Extra fields as a JSON object string")

    def field_map(self) -> dict[str, Any]:
        """Map set arguments to reference names, then merge the extra ``fields`` JSON."""
        field_map = {
            reference: getattr(self, name)
            for name, reference in FIELD_REFERENCE_NAMES.items()
            if getattr(self, name) is not None
        }
        if self.fields:
            try:
                extra = json.loads(self.fields)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Invalid JSON in extra fields: {e}") from e
            if not isinstance(extra, dict):
                raise InvalidInputError("Invalid JSON in extra fields: expected an object")
            field_map.update(extra)
        return field_map


class CreateWorkItemArgs(ScopedArgs, WorkItemFieldArgs):
    work_item_type: str
    title: str
    parent_id: Optional[int] = None


class UpdateWorkItemArgs(ScopedArgs, WorkItemFieldArgs):
    id: int


class AddCommentArgs(ScopedArgs):
    work_item_id: int
    text: str


class LinkWorkItemsArgs(ScopedArgs):
    source_id: int
    target_id: int
    link_type: str

    def link_type_reference(self) -> str:
        return LINK_TYPES.get(self.link_type.lower(), self.link_type)
