from attendance_tracker.models import SubjectRow
from attendance_tracker.processing import clean_cell_text, normalize


def make_row(ordinal: int, name: str, code: str = "CS301") -> SubjectRow:
    return SubjectRow(
        ordinal=ordinal,
        subject_code=code,
        subject_name=name,
        faculty_name="Dr. Rao",
        present_total="10/12",
        attendance_percentage="83.33",
    )


def test_clean_cell_text_keeps_first_line_only():
    assert clean_cell_text("  CS301\n  (Theory)  ") == "CS301"
    assert clean_cell_text("\n\tOperating Systems \nextra") == "Operating Systems"


def test_clean_cell_text_handles_missing_values():
    assert clean_cell_text(None) == ""
    assert clean_cell_text("") == ""
    assert clean_cell_text("   \n  ") == ""


def test_normalize_drops_numeric_subject_names_and_renumbers():
    rows = [make_row(1, "5", code="X"), make_row(2, "CS301")]

    cleaned = normalize(rows)

    assert len(cleaned) == 1
    assert cleaned[0].subject_name == "CS301"
    assert cleaned[0].ordinal == 1


def test_normalize_preserves_order():
    rows = [
        make_row(4, "Compilers", code="CS401"),
        make_row(9, "12", code="??"),
        make_row(7, "Networks", code="CS402"),
        make_row(1, "Databases", code="CS403"),
    ]

    cleaned = normalize(rows)

    assert [row.subject_code for row in cleaned] == ["CS401", "CS402", "CS403"]
    assert [row.ordinal for row in cleaned] == [1, 2, 3]


def test_normalize_keeps_names_that_only_contain_digits():
    rows = [make_row(1, "Maths 2"), make_row(2, "")]

    cleaned = normalize(rows)

    assert [row.subject_name for row in cleaned] == ["Maths 2", ""]


def test_normalize_empty_input():
    assert normalize([]) == []
