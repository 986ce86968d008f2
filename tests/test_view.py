# tests/test_view.py
"""Test list view search, sort and pagination"""

import pytest

from student_dashboard.core.exceptions import InvalidStateError
from student_dashboard.records.models import Student
from student_dashboard.records.view import filter_records, paginate, query, sort_records


class TestFilter:
    """Test search filtering"""

    def test_empty_term_keeps_all(self, sample_students):
        """Test no search term returns every record"""
        assert filter_records(sample_students, "") == sample_students

    def test_all_matches_first_name_prefix(self, sample_students):
        """Test 'all' is a case-insensitive first name prefix match"""
        assert [s.id for s in filter_records(sample_students, "AN")] == ["1", "3"]
        assert filter_records(sample_students, "nna") == []

    def test_firstname_field(self, sample_students):
        """Test the firstname field behaves like 'all'"""
        assert [s.id for s in filter_records(sample_students, "b", "firstname")] == ["2"]

    def test_other_fields_match_substring(self, sample_students):
        """Test other fields match anywhere in the text"""
        assert [s.id for s in filter_records(sample_students, "ROW", "lastname")] == ["2"]
        assert [s.id for s in filter_records(sample_students, "itor", "role")] == ["2"]

    def test_numeric_field(self, sample_students):
        """Test numbers are searched as text"""
        assert [s.id for s in filter_records(sample_students, "2", "age")] == ["1", "3"]

    def test_missing_values_never_match(self):
        """Test records without the field are not matched"""
        assert filter_records([Student(id="1")], "a", "phone") == []

    def test_unknown_field(self, sample_students):
        """Test unknown fields are refused"""
        with pytest.raises(InvalidStateError):
            filter_records(sample_students, "x", "mail")


class TestSort:
    """Test sorting"""

    def test_sort_by_first_name(self, sample_students):
        """Test sorting ignores case"""
        assert [s.firstname for s in sort_records(sample_students)] == ["Andre", "Anna", "bob"]

    def test_missing_names_first(self):
        """Test records without a first name sort first"""
        records = [Student(id="1", firstname="Zed"), Student(id="2")]
        assert [s.id for s in sort_records(records)] == ["2", "1"]


class TestPaginate:
    """Test pagination"""

    def test_pages(self):
        """Test slicing into pages"""
        records = [Student(id=str(i)) for i in range(25)]

        page = paginate(records, page=3, rows_per_page=10)

        assert [s.id for s in page.rows] == [str(i) for i in range(20, 25)]
        assert page.page == 3
        assert page.total_pages == 3
        assert page.total == 25

    def test_out_of_range_clamped(self):
        """Test page numbers are clamped to the valid range"""
        records = [Student(id=str(i)) for i in range(15)]

        assert paginate(records, page=99).page == 2
        assert paginate(records, page=0).page == 1

    def test_empty(self):
        """Test an empty list gives page 1 of 0"""
        page = paginate([], page=4)

        assert page.rows == ()
        assert page.page == 1
        assert page.total_pages == 0

    def test_invalid_rows_per_page(self):
        """Test rows_per_page must be positive"""
        with pytest.raises(InvalidStateError):
            paginate([], rows_per_page=0)


class TestQuery:
    """Test the combined query"""

    def test_no_term_keeps_order(self, sample_students):
        """Test results are not sorted without a search term"""
        page = query(sample_students)
        assert [s.id for s in page.rows] == ["1", "2", "3"]

    def test_term_sorts(self, sample_students):
        """Test results are sorted while searching"""
        page = query(sample_students, term="a")
        assert [s.firstname for s in page.rows] == ["Andre", "Anna"]
