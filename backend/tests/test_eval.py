from eval.run_eval import eval_one, load_eval, print_and_save_report

def test_evalset_parses_as_expected(tmp_path):
    outs = [eval_one(r) for r in load_eval()]
    assert outs, "evalset should not be empty"
    for o in outs:
        assert o["summary_match"] is not False, o["id"]
        assert o["insight_match"] is not False, o["id"]

    tiers = print_and_save_report(outs, tmp_path)
    assert (tmp_path / "parse_report.csv").exists()
    assert tiers["summary"]["marker"] >= 1
    assert tiers["insight"]["fallback"] >= 1
