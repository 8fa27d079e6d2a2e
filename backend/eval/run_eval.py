import csv, json
from collections import Counter
from pathlib import Path
from typing import Dict, List

from narrative_parser import parse_with_trace

ROOT = Path(__file__).parent
EVAL_PATH = ROOT / "evalset.jsonl"
OUT_DIR = ROOT / "out"

FIELDS = ("summary", "insight")


def load_eval(path: Path = EVAL_PATH) -> List[dict]:
    rows = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                rows.append(json.loads(line))
    return rows

def eval_one(row: dict) -> dict:
    """Parse one recorded model output and compare with the expected fields, if any."""
    result, trace = parse_with_trace(row.get("raw", ""))
    out = {"id": row.get("id")}
    for name in FIELDS:
        got = getattr(result, name)
        expected = row.get(f"expected_{name}")
        out[f"{name}_tier"] = trace[name]
        out[f"{name}_match"] = None if expected is None else got == expected
        out[name] = got
    return out

def print_and_save_report(outs: List[dict], out_dir: Path = OUT_DIR) -> Dict[str, Counter]:
    tiers = {name: Counter(o[f"{name}_tier"] for o in outs) for name in FIELDS}
    for name in FIELDS:
        checked = [o[f"{name}_match"] for o in outs if o[f"{name}_match"] is not None]
        acc = sum(checked) / len(checked) if checked else None
        print(f"[{name}] tiers={dict(tiers[name])} accuracy={acc}")

    out_dir.mkdir(exist_ok=True, parents=True)
    header = ["id", *(f"{n}_{k}" for n in FIELDS for k in ("tier", "match")), *FIELDS]
    with open(out_dir / "parse_report.csv", "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=header)
        w.writeheader()
        w.writerows(outs)
    return tiers

def main():
    outs = [eval_one(r) for r in load_eval()]
    print_and_save_report(outs)
    print(f"\nReport saved to: {(OUT_DIR / 'parse_report.csv').resolve()}")

if __name__ == "__main__":
    main()
