# backend/shelfscope/scripts/preview_report.py

"""
Print the deterministic part of a personality report for a preferences file.

No database and no network: the narrative is left out.

Usage:

  cd backend
  python -m shelfscope.scripts.preview_report --file prefs.json
  python -m shelfscope.scripts.preview_report --file prefs.json --raw
"""

import argparse
import json
import sys
from pathlib import Path

from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.services.derived import (
    growth_potential,
    reading_directions,
    reading_dna,
    reading_style,
    report_statistics,
)
from shelfscope.services.persona import resolve_persona
from shelfscope.services.personality import levelize, radar_chart, raw_score, score


def build_preview(preferences: PreferenceInput, include_raw: bool = False) -> dict:
    vector = score(preferences)
    profile = levelize(vector)
    preview = {
        "score_vector": vector.model_dump(mode="json"),
        "profile": [entry.model_dump(mode="json") for entry in profile],
        "radar_chart": [point.model_dump(mode="json") for point in radar_chart(vector)],
        "persona": resolve_persona(vector, profile).model_dump(mode="json"),
        "reading_dna": [item.model_dump(mode="json") for item in reading_dna(preferences, vector)],
        "reading_style": reading_style(vector).model_dump(mode="json"),
        "reading_directions": [
            direction.model_dump(mode="json") for direction in reading_directions(preferences, vector)
        ],
        "growth_potential": growth_potential(preferences).model_dump(mode="json"),
        "statistics": report_statistics(preferences).model_dump(mode="json"),
    }
    if include_raw:
        preview["raw_scores"] = {trait.value: total for trait, total in raw_score(preferences).items()}
    return preview


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Preview a personality report from a preferences JSON file.")
    parser.add_argument("--file", required=True, help="Path to a JSON object of onboarding answers")
    parser.add_argument("--raw", action="store_true", help="Also print the unclamped trait sums")
    args = parser.parse_args(argv)

    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 1

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        print(f"Expected a JSON object in {path}", file=sys.stderr)
        return 1

    preview = build_preview(PreferenceInput.model_validate(data), include_raw=args.raw)
    print(json.dumps(preview, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
