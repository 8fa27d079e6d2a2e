import pytest

from tally import build_report, percentage, survey_statistics, tally_question

def test_zero_answers_give_zero_percentages():
    t = tally_question(1, "Q", [])
    assert (t.agree_count, t.disagree_count) == (0, 0)
    assert t.agree_pct == 0 and t.disagree_pct == 0

def test_kepuasan_three_agree_one_disagree():
    t = tally_question(7, "Apakah Anda puas?", [True, True, False, True])
    assert t.agree_count == 3 and t.disagree_count == 1
    assert t.agree_pct == 75.00 and t.disagree_pct == 25.00

@pytest.mark.parametrize("total", range(1, 41))
def test_percentages_sum_to_hundred_and_stay_in_range(total):
    for agree in range(total + 1):
        t = tally_question(1, "Q", [True] * agree + [False] * (total - agree))
        assert 0 <= t.agree_pct <= 100
        assert 0 <= t.disagree_pct <= 100
        assert abs(t.agree_pct + t.disagree_pct - 100.0) <= 0.01 + 1e-9

def test_rounding_is_half_away_from_zero():
    # 100/32 = 3.125 and 3100/32 = 96.875 are exact halves
    assert percentage(1, 32) == 3.13
    assert percentage(31, 32) == 96.88
    assert percentage(1, 3) == 33.33
    assert percentage(2, 3) == 66.67
    assert percentage(1, 8) == 12.5

def test_report_keeps_question_order_and_zero_fills_missing():
    report = build_report(
        "Survei",
        [(3, "third"), (1, "first"), (2, "second")],
        {1: [True], 3: [False, False]},
        respondent_count=2,
    )
    assert [t.question_id for t in report.per_question] == [3, 1, 2]
    assert report.per_question[0].disagree_count == 2
    missing = report.per_question[2]
    assert missing.agree_count == missing.disagree_count == 0
    assert missing.agree_pct == 0

def test_survey_totals_count_answer_units_not_respondents():
    report = build_report(
        "Survei",
        [(1, "a"), (2, "b")],
        {1: [True, True], 2: [True, False]},
        respondent_count=2,
    )
    stats = survey_statistics(report)
    assert stats.total_responden == 2
    assert stats.total_pertanyaan == 2
    assert (stats.total_setuju, stats.total_tidak_setuju) == (3, 1)
    assert stats.total_setuju + stats.total_tidak_setuju > stats.total_responden
    assert stats.setuju_percentage == 75.0 and stats.tidak_setuju_percentage == 25.0

def test_survey_totals_without_answers():
    stats = survey_statistics(build_report("Kosong", [(1, "a")], {}, 0))
    assert stats.setuju_percentage == 0 and stats.tidak_setuju_percentage == 0
