"""Tests for work item JSON simplification."""
import copy

from azdo_mcp.simplify import (
    html_to_text,
    normalize_text,
    simplify_field_name,
    simplify_identity,
    simplify_work_item_json,
)


def raw_work_item():
    return {
        "id": 7,
        "rev": 3,
        "url": "https://dev.azure.com/org/_apis/wit/workItems/7",
        "_links": {"self": {"href": "x"}},
        "fields": {
            "System.WorkItemType": "Bug",
            "System.Title": "Crash on save",
            "System.State": "Active",
            "System.Reason": "New defect reported",
            "System.AssignedTo": {
                "displayName": "Jane Doe",
                "uniqueName": "jane@example.com",
                "url": "https://x",
                "imageUrl": "https://x/avatar",
                "descriptor": "aad.abc",
            },
            "System.BoardColumn": "Doing",
            "WEF_0A1B_Kanban.Column.Done": False,
            "System.TeamProject": "Proj",
            "System.IterationPath": "Proj\\Sprint 1",
            "Microsoft.VSTS.Common.Priority": 2,
            "Microsoft.VSTS.Common.StateChangeDate": "2024-01-02T00:00:00Z",
            "System.Tags": "bug; ui",
            "System.Description": "<div>Steps&nbsp;below</div><ul><li>open</li><li>save</li></ul>",
        },
    }


class TestEndToEnd:
    """Test the canonical record shape."""

    def test_minimal_record(self):
        """Test that fields are flattened, renamed and tags tightened."""
        raw = {"id": 42, "fields": {"System.Title": "Fix bug", "System.BoardColumn": "Active", "System.Tags": "bug; ui"}}
        assert simplify_work_item_json(raw) == {"id": 42, "Title": "Fix bug", "Column": "Active", "Tags": "bug;ui"}

    def test_full_record(self):
        """Test noise removal, deny-list, renames, identity and rich text together."""
        result = simplify_work_item_json(raw_work_item())
        assert result == {
            "id": 7,
            "rev": 3,
            "Type": "B",
            "Title": "Crash on save",
            "AssignedTo": "Jane Doe <jane@example.com>",
            "Column": "Doing",
            "Project": "Proj",
            "Iteration": "Proj\\Sprint 1",
            "Priority": 2,
            "Tags": "bug;ui",
            "Description": "Steps below\n* open\n* save",
        }

    def test_idempotent(self):
        """Test that simplifying twice equals simplifying once."""
        once = simplify_work_item_json(raw_work_item())
        twice = simplify_work_item_json(copy.deepcopy(once))
        assert twice == once

    def test_idempotent_with_comments(self):
        """Test that nested comment identities are stable across a second pass."""
        raw = raw_work_item()
        raw["comments"] = [{
            "id": 3,
            "text": "Looks good",
            "createdDate": "2024-01-03T10:00:00Z",
            "createdBy": {
                "displayName": "Bob",
                "uniqueName": "bob@example.com",
                "_links": {"avatar": {"href": "https://x/avatar"}},
                "imageUrl": "https://x/avatar",
                "url": "https://x/identity",
            },
        }]

        once = simplify_work_item_json(raw)
        twice = simplify_work_item_json(copy.deepcopy(once))

        assert once["comments"] == [{
            "id": 3,
            "text": "Looks good",
            "createdDate": "2024-01-03T10:00:00Z",
            "createdBy": {"displayName": "Bob", "uniqueName": "bob@example.com"},
        }]
        assert twice == once

    def test_list_of_items(self):
        """Test that every item of a list is simplified."""
        items = [
            {"id": 1, "fields": {"System.Title": "a"}},
            {"id": 2, "fields": {"System.Title": "b"}},
        ]
        assert simplify_work_item_json(items) == [{"id": 1, "Title": "a"}, {"id": 2, "Title": "b"}]

    def test_scalars_pass_through(self):
        """Test that non-container values are returned unchanged."""
        assert simplify_work_item_json(5) == 5
        assert simplify_work_item_json("x") == "x"
        assert simplify_work_item_json(None) is None


class TestMergePolicy:
    """Test key collision handling."""

    def test_existing_top_level_key_wins(self):
        """Test that a flattened field never overwrites a key already on the record."""
        raw = {"id": 1, "fields": {"id": 99, "System.Title": "t"}}
        assert simplify_work_item_json(raw) == {"id": 1, "Title": "t"}

    def test_first_field_wins(self):
        """Test that the first field producing a name wins over later ones."""
        raw = {"id": 1, "fields": {"System.BoardColumn": "Doing", "WEF_X_Kanban.Column": "Other"}}
        assert simplify_work_item_json(raw)["Column"] == "Doing"

    def test_noise_removed_at_every_level(self):
        """Test that url/_links are dropped from nested objects too."""
        raw = {"id": 1, "comments": [{"id": 5, "url": "u", "createdBy": {"displayName": "A", "_links": {}}}]}
        assert simplify_work_item_json(raw) == {"id": 1, "comments": [{"id": 5, "createdBy": {"displayName": "A"}}]}


class TestFieldNames:
    """Test field name simplification."""

    def test_prefixes_stripped(self):
        """Test that the well-known namespaces are removed."""
        assert simplify_field_name("System.Title") == "Title"
        assert simplify_field_name("Microsoft.VSTS.Common.Priority") == "Priority"
        assert simplify_field_name("Microsoft.VSTS.Scheduling.Effort") == "Effort"
        assert simplify_field_name("Microsoft.VSTS.CMMI.Justification") == "Justification"

    def test_kanban_fields(self):
        """Test that per-board Kanban fields resolve to Column/Lane."""
        assert simplify_field_name("WEF_6CB_Kanban.Column") == "Column"
        assert simplify_field_name("WEF_6CB_Kanban.Lane") == "Lane"
        assert simplify_field_name("WEF_6CB_Kanban.Column.Done") == "Column.Done"

    def test_unknown_field_kept(self):
        """Test that custom fields keep their full name."""
        assert simplify_field_name("Custom.Team") == "Custom.Team"

    def test_deny_listed_fields_dropped(self):
        """Test that audit fields disappear."""
        raw = {"id": 1, "fields": {
            "System.CommentCount": 3,
            "Microsoft.VSTS.Common.ClosedBy": {"displayName": "X"},
            "Microsoft.VSTS.Common.ResolvedDate": "2024-01-01",
            "WEF_A_Kanban.Column.Done": True,
        }}
        assert simplify_work_item_json(raw) == {"id": 1}


class TestIdentity:
    """Test identity collapsing."""

    def test_with_unique_name(self):
        """Test that identity becomes 'Name <unique>'."""
        assert simplify_identity({"displayName": "A", "uniqueName": "a@x"}) == "A <a@x>"

    def test_without_unique_name(self):
        """Test that a missing unique name leaves the display name only."""
        assert simplify_identity({"displayName": "A"}) == "A"
        assert simplify_identity({"displayName": "A", "uniqueName": ""}) == "A"

    def test_not_an_identity(self):
        """Test that other values are returned unchanged."""
        assert simplify_identity({"name": "A"}) == {"name": "A"}
        assert simplify_identity("A") == "A"


class TestRichText:
    """Test HTML to text conversion and normalization."""

    def test_line_breaks_and_rules(self):
        """Test that br and hr become newlines and a separator."""
        assert normalize_text(html_to_text("<p>a<br>b</p><hr><p>c</p>")) == "a\nb\n---\nc"

    def test_images_removed(self):
        """Test that images and image placeholders disappear."""
        assert normalize_text(html_to_text("<p>see<img src='x.png'></p>")) == "see"
        assert normalize_text("[Image]caption") == "caption"

    def test_whitespace_collapsed(self):
        """Test that runs of spaces/newlines collapse and lines are trimmed."""
        assert normalize_text("a   b\r\n\n\t c  \n") == "a b\nc"

    def test_box_drawing_dashes(self):
        """Test that box-drawing separators become plain dashes."""
        assert normalize_text("x\n─────\ny") == "x\n---\ny"

    def test_acceptance_criteria_cleaned(self):
        """Test that Acceptance is treated as rich text."""
        raw = {"id": 1, "fields": {"Microsoft.VSTS.Common.AcceptanceCriteria": "<p>Works</p><p>Fast</p>"}}
        assert simplify_work_item_json(raw) == {"id": 1, "Acceptance": "Works\nFast"}
