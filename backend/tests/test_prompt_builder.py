from prompt_builder import build_survey_prompt
from tally import build_report

def _report():
    return build_report(
        "Kepuasan",
        [(10, "Apakah layanan cepat?"), (11, "Apakah staf ramah?")],
        {10: [True, True, True, False], 11: [False, True]},
        respondent_count=4,
    )

def test_prompt_is_deterministic():
    assert build_survey_prompt(_report()) == build_survey_prompt(_report())

def test_prompt_contains_metadata_and_questions_in_order():
    p = build_survey_prompt(_report())
    assert "Judul: Kepuasan" in p
    assert "Total Responden: 4 orang" in p
    assert "Total Pertanyaan: 2" in p
    assert "[Pertanyaan 1]\nApakah layanan cepat?" in p
    assert "[Pertanyaan 2]\nApakah staf ramah?" in p
    assert "3 orang (75.00%)" in p and "1 orang (25.00%)" in p
    assert "1 orang (50.00%)" in p
    assert p.index("INFORMASI SURVEI") < p.index("[Pertanyaan 1]") < p.index("[Pertanyaan 2]") < p.index("TUGAS ANALISIS")

def test_prompt_demands_both_markers_and_language():
    p = build_survey_prompt(_report())
    task = p[p.index("TUGAS ANALISIS"):]
    assert "**SUMMARY:**" in task and "**INSIGHT:**" in task
    assert task.index("**SUMMARY:**") < task.index("**INSIGHT:**")
    assert "bahasa Indonesia" in task
    assert "WAJIB" in task

def test_prompt_for_survey_without_questions():
    p = build_survey_prompt(build_report("Kosong", [], {}, 0))
    assert "Total Pertanyaan: 0" in p
    assert "[Pertanyaan" not in p
