"""Tests for response formatters."""
import pytest

from azdo_mcp import formatters
from azdo_mcp.errors import ProjectionError, SerializationError


class TestWorkItemsToCsv:
    """Test CSV projection of simplified work items."""

    def test_end_to_end_record(self):
        """Test the header and row for a minimal simplified record."""
        record = {"id": 42, "Title": "Fix bug", "Column": "Active", "Tags": "bug;ui"}
        assert formatters.work_items_to_csv(record) == "id,Title,Column,Tags\n42,Fix bug,Active,bug;ui\n"

    def test_empty_column_pruned(self):
        """Test that a column empty in every row is left out."""
        records = [
            {"id": 1, "Title": "a", "Description": ""},
            {"id": 2, "Title": "b", "Description": None},
        ]
        assert formatters.work_items_to_csv(records) == "id,Title\n1,a\n2,b\n"

    def test_projection_is_idempotent(self):
        """Test that projecting the same records twice gives identical output."""
        records = [{"id": 1, "Title": "a", "Description": ""}]
        assert formatters.work_items_to_csv(records) == formatters.work_items_to_csv(records)

    def test_column_active_if_any_row_has_value(self):
        """Test that every row gets a cell for a column one row filled."""
        records = [{"id": 1, "Priority": 2}, {"id": 2}]
        assert formatters.work_items_to_csv(records) == "id,Priority\n1,2\n2,\n"

    def test_fixed_column_order(self):
        """Test that columns follow the fixed order, not the record's key order."""
        record = {"Tags": "x", "Title": "t", "id": 1, "Type": "B"}
        assert formatters.work_items_to_csv(record).splitlines()[0] == "id,Type,Title,Tags"

    def test_unknown_keys_ignored(self):
        """Test that keys outside the column set are not projected."""
        record = {"id": 1, "rev": 4, "Custom.Team": "A"}
        assert formatters.work_items_to_csv(record) == "id\n1\n"

    def test_text_escaping(self):
        """Test that newlines and tabs are escaped and carriage returns dropped."""
        record = {"id": 1, "Description": "line1\r\nline2\tend"}
        assert formatters.work_items_to_csv(record) == "id,Description\n1,line1\\nline2\\tend\n"

    def test_csv_quoting(self):
        """Test that commas and quotes are quoted the CSV way."""
        record = {"id": 1, "Title": 'Say "hi", then go'}
        assert formatters.work_items_to_csv(record) == 'id,Title\n1,"Say ""hi"", then go"\n'

    def test_scalar_rendering(self):
        """Test booleans, floats and unsupported shapes."""
        record = {"id": 1, "Effort": 2.5, "Risk": True, "AssignedTo": {"displayName": "A"}}
        assert formatters.work_items_to_csv(record) == "id,AssignedTo,Effort,Risk\n1,,2.5,true\n"

    def test_comments_as_json(self):
        """Test that comments are embedded as compact JSON."""
        record = {"id": 1, "comments": [{"id": 9, "text": "hi"}]}
        assert formatters.work_items_to_csv(record) == 'id,comments\n1,"[{""id"":9,""text"":""hi""}]"\n'

    def test_empty_list(self):
        """Test that no records produce an empty string."""
        assert formatters.work_items_to_csv([]) == ""

    def test_invalid_input(self):
        """Test that a non-object, non-array input is rejected."""
        with pytest.raises(ProjectionError, match="expected object or array"):
            formatters.work_items_to_csv("nope")
        with pytest.raises(ProjectionError):
            formatters.work_items_to_csv(42)


class TestCompactJson:
    """Test compact JSON output."""

    def test_no_whitespace(self):
        """Test that separators carry no spaces and unicode is kept."""
        assert formatters.to_compact_json({"a": [1, 2], "b": "é"}) == '{"a":[1,2],"b":"é"}'

    def test_unserializable(self):
        """Test that values JSON cannot encode raise SerializationError."""
        with pytest.raises(SerializationError):
            formatters.to_compact_json({"a": object()})


class TestLookups:
    """Test lookup formatting."""

    def test_board_columns(self):
        """Test board column CSV."""
        columns = [
            {"name": "New", "itemLimit": 0, "isSplit": False, "columnType": "incoming"},
            {"name": "Doing", "itemLimit": 5, "isSplit": True, "columnType": "inProgress"},
        ]
        assert formatters.board_columns_to_csv(columns) == (
            "name,item_limit,is_split,column_type\n"
            "New,0,false,incoming\n"
            "Doing,5,true,inProgress\n"
        )

    def test_iteration(self):
        """Test that dates lose their time part and missing ones show N/A."""
        iteration = {"name": "Sprint 1", "attributes": {"startDate": "2024-01-01T00:00:00Z", "finishDate": None}}
        assert formatters.format_iteration(iteration) == "Sprint 1,2024-01-01,N/A"

    def test_iteration_with_timeframe(self):
        """Test the four-part iteration format."""
        iteration = {
            "name": "Sprint 2",
            "attributes": {"startDate": "2024-01-15T00:00:00Z", "finishDate": "2024-01-28T00:00:00Z", "timeFrame": "future"},
        }
        assert formatters.format_iteration_with_timeframe(iteration) == "Sprint 2,future,2024-01-15,2024-01-28"

    def test_node_paths(self):
        """Test depth-first flattening of a classification tree."""
        root = {
            "path": "\\Proj\\Area",
            "children": [
                {"path": "\\Proj\\Area\\A", "children": [{"path": "\\Proj\\Area\\A\\1"}]},
                {"path": "\\Proj\\Area\\B"},
            ],
        }
        assert formatters.collect_node_paths(root) == [
            "\\Proj\\Area",
            "\\Proj\\Area\\A",
            "\\Proj\\Area\\A\\1",
            "\\Proj\\Area\\B",
        ]

    def test_rows(self):
        """Test headerless rows."""
        assert formatters.rows_to_csv([["Jane", "jane@x"], ["Bob", "bob@x"]]) == "Jane,jane@x\nBob,bob@x\n"
