from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from patch_digest.core.classifier import classify
from patch_digest.core.config import DEFAULT_CONFIG_PATH, load_digest_config
from patch_digest.core.diagnostics import ExtractionDiagnostics
from patch_digest.core.lexicon import load_lexicon
from patch_digest.core.pipelines import extract_patch_content


def load_dataset(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")
    samples: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as fp:
        for line in fp:
            line = line.strip()
            if not line:
                continue
            samples.append(json.loads(line))
    if not samples:
        raise ValueError(f"Dataset {path} is empty.")
    return samples


def champion_recall(expected: Sequence[str], found: Sequence[str]) -> float:
    expected_set = {name.lower() for name in expected if name}
    if not expected_set:
        return 1.0
    found_set = {name.lower() for name in found if name}
    return len(expected_set & found_set) / len(expected_set)


def verdict_accuracy(expected: Dict[str, str], predicted: Dict[str, str]) -> Optional[float]:
    if not expected:
        return None
    hits = sum(
        1 for name, verdict in expected.items()
        if predicted.get(name.lower()) == str(verdict).lower()
    )
    return hits / len(expected)


def evaluate_sample(sample: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    html_path = Path(sample["html_path"])
    if not html_path.is_absolute():
        html_path = args.dataset.parent / html_path

    doc = BeautifulSoup(html_path.read_text(encoding="utf-8"), "html.parser")
    lexicon = load_lexicon(args.lexicon) if args.lexicon else load_lexicon()
    diagnostics = ExtractionDiagnostics()
    content = extract_patch_content(
        doc,
        sample["version"],
        lexicon=lexicon,
        settings=load_digest_config(args.config),
        diagnostics=diagnostics,
    )

    found = [record.name for record in content.character_changes]
    predicted = {
        record.name.lower(): classify(record, lexicon=lexicon).value
        for record in content.character_changes
    }
    expected_verdicts = sample.get("expected_verdicts") or {}

    return {
        "sample_id": sample.get("id") or html_path.stem,
        "version": sample["version"],
        "expected_champions": sample.get("expected_champions") or [],
        "found_champions": found,
        "recall": champion_recall(sample.get("expected_champions") or [], found),
        "verdict_accuracy": verdict_accuracy(expected_verdicts, predicted),
        "predicted_verdicts": predicted,
        "diagnostics": diagnostics.to_dict(),
    }


def write_log(records: Iterable[Dict[str, Any]], out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    log_path = out_dir / f"samples_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.jsonl"
    with log_path.open("w", encoding="utf-8") as fp:
        for record in records:
            fp.write(json.dumps(record, ensure_ascii=False) + "\n")
    return log_path


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Offline evaluation of patch notes extraction.")
    parser.add_argument("--dataset", type=Path, default=Path("data/samples/dataset.jsonl"), help="JSONL с сохранёнными страницами")
    parser.add_argument("--limit", type=int, default=None, help="Ограничить количество примеров")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Путь к patch_digest.yaml")
    parser.add_argument("--lexicon", type=Path, default=None, help="Путь к lexicon.yaml")
    parser.add_argument("--log-dir", type=Path, default=Path("logs/samples"), help="Куда писать JSONL-отчёт")
    return parser


def main() -> None:
    args = build_arg_parser().parse_args()
    samples = load_dataset(args.dataset)
    if args.limit is not None:
        samples = samples[: args.limit]

    records: List[Dict[str, Any]] = []
    for idx, sample in enumerate(samples, start=1):
        record = evaluate_sample(sample, args)
        records.append(record)
        accuracy = record["verdict_accuracy"]
        print(
            f"[{idx}/{len(samples)}] recall={record['recall']:.2f} "
            f"verdicts={'—' if accuracy is None else f'{accuracy:.2f}'} | {record['sample_id']}"
        )

    if not records:
        print("Нет результатов для отчёта.")
        return

    avg_recall = sum(r["recall"] for r in records) / len(records)
    scored = [r["verdict_accuracy"] for r in records if r["verdict_accuracy"] is not None]

    log_path = write_log(records, args.log_dir)

    print("-" * 60)
    print(f"Samples: {len(records)}")
    print(f"Average champion recall: {avg_recall:.3f}")
    if scored:
        print(f"Average verdict accuracy: {sum(scored) / len(scored):.3f}")
    print(f"Log written to: {log_path}")


if __name__ == "__main__":
    main()
