"""Tests for core/parser.py"""

import pytest

from core.parser import DelimitedRecordParser


HEADER = "UserName,SamAccountName,Enabled,LastLogonDate,MemberOf,Department"


@pytest.fixture
def parser():
    return DelimitedRecordParser()


class TestParse:
    def test_well_formed_rows(self, parser):
        text = "\n".join([
            HEADER,
            "John Doe,jdoe,True,2023-10-01,Users,IT",
            "Jane Smith,jsmith,False,2023-05-15,Admins,HR",
        ])
        records = parser.parse(text)
        assert len(records) == 2
        assert dict(records[0]) == {
            "UserName": "John Doe",
            "SamAccountName": "jdoe",
            "Enabled": "True",
            "LastLogonDate": "2023-10-01",
            "MemberOf": "Users",
            "Department": "IT",
        }
        assert records[1]["SamAccountName"] == "jsmith"

    def test_quoted_field_keeps_embedded_comma(self, parser):
        text = HEADER + '\nJohn Doe,jdoe,True,2023-10-01,Users,"Sales, APAC"'
        records = parser.parse(text)
        assert records[0]["Department"] == "Sales, APAC"

    def test_quoted_group_list(self, parser):
        text = HEADER + '\nJohn Doe,jdoe,True,2023-10-01,"Domain Admins,Users",IT'
        records = parser.parse(text)
        assert records[0]["MemberOf"] == "Domain Admins,Users"
        assert records[0]["Department"] == "IT"

    def test_crlf_line_endings(self, parser):
        text = HEADER + "\r\nJohn Doe,jdoe,True,2023-10-01,Users,IT\r\nJane,js,True,2023-10-01,Users,HR\r\n"
        records = parser.parse(text)
        assert [r["UserName"] for r in records] == ["John Doe", "Jane"]
        assert records[0]["Department"] == "IT"

    def test_blank_lines_skipped(self, parser):
        text = HEADER + "\n\nJohn Doe,jdoe,True,2023-10-01,Users,IT\n   \n"
        assert len(parser.parse(text)) == 1

    def test_short_rows_dropped(self, parser):
        text = HEADER + "\nJohn Doe,jdoe,True,2023-10-01\nJane,js,True,2023-10-01,Users"
        records = parser.parse(text)
        assert len(records) == 1
        assert records[0]["UserName"] == "Jane"

    def test_missing_trailing_fields_are_empty(self, parser):
        text = HEADER + "\nJane,js,True,2023-10-01,Users"
        assert parser.parse(text)[0]["Department"] == ""

    def test_extra_fields_ignored(self, parser):
        text = HEADER + "\nJane,js,True,2023-10-01,Users,HR,extra,more"
        record = parser.parse(text)[0]
        assert len(record) == 6
        assert record["Department"] == "HR"

    def test_duplicate_header_later_value_wins(self, parser):
        text = "A,B,C,D,A\n1,2,3,4,5"
        assert parser.parse(text)[0]["A"] == "5"

    def test_header_tokens_trimmed_and_bom_removed(self, parser):
        text = "\ufeffUserName , SamAccountName,Enabled,LastLogonDate,MemberOf\nJohn,jdoe,True,x,Users"
        record = parser.parse(text)[0]
        assert record["UserName"] == "John"
        assert record["SamAccountName"] == "jdoe"

    def test_values_trimmed(self, parser):
        text = HEADER + "\n  John Doe , jdoe ,True,2023-10-01,Users,IT"
        record = parser.parse(text)[0]
        assert record["UserName"] == "John Doe"
        assert record["SamAccountName"] == "jdoe"

    def test_empty_input(self, parser):
        assert parser.parse("") == []

    def test_header_only(self, parser):
        assert parser.parse(HEADER) == []
        assert parser.parse(HEADER + "\n") == []

    def test_records_are_read_only(self, parser):
        record = parser.parse(HEADER + "\nJohn Doe,jdoe,True,2023-10-01,Users,IT")[0]
        with pytest.raises(TypeError):
            record["UserName"] = "changed"


class TestSplitFields:
    def test_plain(self):
        assert DelimitedRecordParser.split_fields("a,b,c") == ["a", "b", "c"]

    def test_quoted_commas(self):
        assert DelimitedRecordParser.split_fields('a,"b, c",d') == ["a", "b, c", "d"]

    def test_only_one_quote_layer_stripped(self):
        assert DelimitedRecordParser.split_fields('"""x"""') == ['""x""']

    def test_lone_quote_unwraps_to_empty(self):
        assert DelimitedRecordParser.split_fields('"') == [""]
