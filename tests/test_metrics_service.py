import pytest

from attendance_tracker.data import Database
from attendance_tracker.errors import InvalidPresentTotal, UserNotFound
from attendance_tracker.models import SubjectRow, parse_present_total
from attendance_tracker.services import MetricsService, UserService, compute_subject_metric


def row(code, present_total, name="Subject", faculty="Faculty"):
    return SubjectRow(1, code, name, faculty, present_total, "")


def setup_metrics(tmp_path):
    database = Database(tmp_path / "attendance.db")
    database.initialize()
    users = UserService(database)
    user_id = users.create_user("alice", "2021UGCS001", "pw")
    return users, MetricsService(database), user_id


def test_below_threshold_needs_classes():
    metric = compute_subject_metric(row("CS301", "30/50"))

    assert metric.attendance_percentage == pytest.approx(60.0)
    assert not metric.is_above_75
    assert metric.classes_needed == 30
    assert metric.classes_can_skip == 0


def test_above_threshold_can_skip_classes():
    metric = compute_subject_metric(row("CS301", "80/100"))

    assert metric.attendance_percentage == pytest.approx(80.0)
    assert metric.is_above_75
    assert metric.classes_can_skip == 6
    assert metric.classes_needed == 0


def test_exactly_at_threshold():
    metric = compute_subject_metric(row("CS301", "3/4"))

    assert metric.is_above_75
    assert metric.classes_can_skip == 0
    assert metric.classes_needed == 0


def test_no_classes_held_yet():
    metric = compute_subject_metric(row("CS301", "0/0"))

    assert metric.attendance_percentage == 0
    assert not metric.is_above_75
    assert metric.classes_needed == 0


@pytest.mark.parametrize("value", ["", "12", "a/b", "5/3", "-1/4", "1/2/3"])
def test_parse_present_total_rejects_malformed_values(value):
    with pytest.raises(InvalidPresentTotal):
        parse_present_total(value)


def test_parse_present_total_tolerates_spaces():
    assert parse_present_total(" 7 / 9 ") == (7, 9)


def test_update_metrics_overwrites_aggregate_and_upserts_subjects(tmp_path):
    users, metrics, user_id = setup_metrics(tmp_path)

    first = metrics.update_metrics(user_id, [row("CS301", "30/50"), row("CS302", "80/100")])
    assert first.overall_attended_classes == 110
    assert first.overall_total_classes == 150
    assert first.overall_percentage == pytest.approx(110 / 150 * 100)

    second = metrics.update_metrics(user_id, [row("CS301", "31/51", name="Operating Systems")])
    assert second.overall_attended_classes == 31
    assert second.overall_total_classes == 51

    user = users.require_user(user_id)
    assert user.overall_attended_classes == 31
    assert user.overall_total_classes == 51

    stored = {metric.subject_code: metric for metric in metrics.list_for_user(user_id)}
    assert set(stored) == {"CS301", "CS302"}
    assert stored["CS301"].attended_classes == 31
    assert stored["CS301"].total_classes == 51
    assert stored["CS301"].subject_name == "Operating Systems"
    assert stored["CS302"].classes_can_skip == 6


def test_update_metrics_unknown_user(tmp_path):
    _, metrics, _ = setup_metrics(tmp_path)

    with pytest.raises(UserNotFound):
        metrics.update_metrics(999, [row("CS301", "1/1")])

    assert metrics.list_for_user(999) == []


def test_update_metrics_with_no_rows_resets_aggregate(tmp_path):
    users, metrics, user_id = setup_metrics(tmp_path)
    metrics.update_metrics(user_id, [row("CS301", "3/4")])

    aggregate = metrics.update_metrics(user_id, [])

    assert aggregate.overall_total_classes == 0
    assert aggregate.overall_percentage == 0
    assert users.require_user(user_id).overall_percentage == 0
