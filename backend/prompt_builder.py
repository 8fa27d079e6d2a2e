# Prompt construction for Gemini survey analysis
from __future__ import annotations
from tally import SurveyTallyReport

# Labels the parser searches for; the prompt must ask for them verbatim
SUMMARY_MARKER = "SUMMARY"
INSIGHT_MARKER = "INSIGHT"

_RULE = "═" * 38
_THIN_RULE = "━" * 36


def _section(title: str) -> str:
    return f"{_RULE}\n{title}\n{_RULE}\n"


def _pct(value: float) -> str:
    return f"{value:.2f}"


def build_survey_prompt(report: SurveyTallyReport) -> str:
    """Render the analysis prompt for a tally report.

    The output depends only on ``report``, so identical reports always give
    byte-identical prompts.
    """
    lines = [
        "Anda adalah seorang analis survei profesional. "
        "Analisis hasil survei berikut secara mendalam:\n\n",
        _section("INFORMASI SURVEI"),
        f"Judul: {report.survey_title}\n",
        f"Total Responden: {report.total_respondents} orang\n",
        f"Total Pertanyaan: {len(report.per_question)}\n\n",
        _section("DETAIL HASIL PER PERTANYAAN"),
    ]

    for num, tally in enumerate(report.per_question, start=1):
        lines.append(f"\n[Pertanyaan {num}]\n")
        lines.append(f"{tally.question_text}\n")
        lines.append(f"{_THIN_RULE}\n")
        lines.append(f"✓ Setuju        : {tally.agree_count} orang ({_pct(tally.agree_pct)}%)\n")
        lines.append(f"✗ Tidak Setuju  : {tally.disagree_count} orang ({_pct(tally.disagree_pct)}%)\n")

    lines += [
        "\n\n",
        _section("TUGAS ANALISIS"),
        "Berdasarkan data survei di atas, berikan analisis dalam format berikut:\n\n",
        f"**{SUMMARY_MARKER}:**\n",
        "Buat ringkasan singkat (2-3 kalimat) tentang hasil survei. "
        "Sebutkan pola umum dari jawaban responden.\n\n",
        f"**{INSIGHT_MARKER}:**\n",
        "Berikan 3-4 poin insight mendalam dan rekomendasi aksi konkret. "
        "Fokus pada implikasi praktis.\n\n",
        "Gunakan bahasa Indonesia yang profesional. "
        f"WAJIB gunakan format dengan marker **{SUMMARY_MARKER}:** dan **{INSIGHT_MARKER}:**, "
        "jangan menghilangkan salah satu marker.",
    ]
    return "".join(lines)
