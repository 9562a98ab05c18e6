"""
PhishLens Evaluation Pipeline
─────────────────────────────
Runs the engine offline (no redirect resolution, no domain lookups) against
datasets/url_samples.csv and datasets/text_samples.csv and writes
per-channel precision / recall / F1 to evaluation/metrics.json.

Usage:
    python -m evaluation.evaluate          (from the repository root)
"""

import csv
import json
import sys
from collections import Counter
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "backend"))

DATASETS = ROOT / "datasets"
METRICS_OUT = ROOT / "evaluation" / "metrics.json"


def offline_engine():
    from phishlens.catalog import CatalogStore
    from phishlens.engine import RiskEngine
    from phishlens.lookups import no_lookup

    return RiskEngine(catalogs=CatalogStore.open(), lookup=no_lookup, resolve_redirects=False)


def _ratio(num: int, den: int) -> float:
    return round(num / den, 3) if den else 0.0


def score_predictions(y_true, y_pred) -> dict:
    """Macro-averaged metrics over the Safe / Warning / Phishing labels."""
    from phishlens.models import Label

    labels = [lbl.value for lbl in Label]
    confusion = Counter(zip(y_true, y_pred))

    per_class = {}
    for lbl in labels:
        hits = confusion[(lbl, lbl)]
        predicted = sum(n for (_, p), n in confusion.items() if p == lbl)
        actual = sum(n for (t, _), n in confusion.items() if t == lbl)
        precision, recall = _ratio(hits, predicted), _ratio(hits, actual)
        f1 = round(2 * precision * recall / (precision + recall), 3) if precision + recall else 0.0
        per_class[lbl] = {"precision": precision, "recall": recall, "f1": f1, "support": actual}

    present = [m for m in per_class.values() if m["support"]] or [{"precision": 0, "recall": 0, "f1": 0}]
    correct = sum(confusion[(lbl, lbl)] for lbl in labels)
    return {
        "accuracy": _ratio(correct, len(y_true)),
        "precision": round(sum(m["precision"] for m in present) / len(present), 3),
        "recall": round(sum(m["recall"] for m in present) / len(present), 3),
        "f1": round(sum(m["f1"] for m in present) / len(present), 3),
        "per_class": per_class,
        "confusion": {t: {p: confusion[(t, p)] for p in labels} for t in labels},
        "dataset_size": len(y_true),
        "correct": correct,
    }


def evaluate_channel(engine, csv_name: str, column: str, analyze) -> dict:
    csv_path = DATASETS / csv_name
    if not csv_path.exists():
        print(f"Dataset not found: {csv_path}")
        return {}

    with open(csv_path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    y_true, y_pred = [], []
    for row in rows:
        value = (row.get(column) or "").strip()
        label = (row.get("label") or "").strip()
        if not value or not label:
            continue
        result = analyze(value)
        y_true.append(label)
        y_pred.append(result.label.value)

    metrics = score_predictions(y_true, y_pred)
    print(f"{csv_name}: {metrics['correct']}/{metrics['dataset_size']} correct "
          f"({metrics['accuracy'] * 100:.1f}%)  F1={metrics['f1']}")
    for lbl, m in metrics["per_class"].items():
        print(f"  {lbl:10s}  P={m['precision']:.3f}  R={m['recall']:.3f}  F1={m['f1']:.3f}  n={m['support']}")
    return metrics


def main():
    engine = offline_engine()
    try:
        output = {
            "url": evaluate_channel(engine, "url_samples.csv", "url", engine.analyze_url),
            "text": evaluate_channel(engine, "text_samples.csv", "text", engine.analyze_text),
            "catalog_version": engine.catalogs.snapshot().version,
            "last_evaluated": str(date.today()),
        }
    finally:
        engine.close()

    METRICS_OUT.parent.mkdir(parents=True, exist_ok=True)
    METRICS_OUT.write_text(json.dumps(output, indent=2))
    print(f"Saved to {METRICS_OUT}")
    return output


if __name__ == "__main__":
    print("=" * 50)
    print("PhishLens Evaluation Pipeline")
    print("=" * 50)
    main()
