#!/usr/bin/env python3
"""
metro_map.py — derive map data from a stored transit system document.

Stages:
  1. Load      — read the system JSON (a bare system, or {"map": ..., "meta": ...})
  2. Sanitize  — normalize coordinates, drop dangling station references
  3. Summarize — station/line counts, centroid, track length, spacing, level
  4. Segments  — interlined station pairs with per-colour offsets → GeoJSON
  5. Keywords  — optional title + reverse-geocoded place keywords

Usage:
    python3 metro_map.py system.json                     # summary + segments
    python3 metro_map.py system.json --keywords          # also geocode keywords
    python3 metro_map.py system.json --previous old.geojson
                                                         # report changed segments
    python3 metro_map.py system.json --out DIR           # write files into DIR
    python3 metro_map.py -h                              # show this help

Output:
    segments.geojson and summary.json, in the current directory or --out DIR.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from config import LOG_FORMAT, SEGMENTS_FILE, SUMMARY_FILE
from geocoder import GeoKeywordLookup
from interlining import build_interline_segments, diff_interline_segments, segments_to_geojson
from system_edits import sanitize_meta, sanitize_system
from track_stats import summarize_system

logger = logging.getLogger(__name__)


# ── Stage 1: Load ─────────────────────────────────────────────────────

def load_document(path: str) -> tuple[dict, dict]:
    """Return (system, meta) from a saved document."""
    doc = json.loads(Path(path).read_text())
    if not isinstance(doc, dict):
        raise ValueError("document is not a JSON object")
    if "map" in doc:
        if not isinstance(doc["map"], dict):
            raise ValueError("\"map\" is not a JSON object")
        system, meta = doc["map"], doc.get("meta") or {}
    else:
        system, meta = doc, doc.pop("meta", None) or {}
    if not isinstance(meta, dict):
        raise ValueError("\"meta\" is not a JSON object")
    return system, meta


def segments_from_geojson(data: dict) -> dict:
    """Rebuild a segment map (colours only) from previously exported GeoJSON."""
    segments: dict[str, dict] = {}
    for feat in data.get("features", []):
        parts = feat.get("properties", {}).get("segment-longkey", "").split("|")
        if len(parts) != 3:
            continue
        key = f"{parts[0]}|{parts[1]}"
        segment = segments.setdefault(key, {"stationIds": parts[:2], "colors": [], "offsets": {}})
        segment["colors"].append(parts[2])
    return segments


# ── Stages 3–5 ────────────────────────────────────────────────────────

def build_outputs(system: dict, keywords: bool = False) -> tuple[dict, dict, dict]:
    """Return (summary, segments, geojson) for a sanitized system."""
    summary = summarize_system(system)
    logger.info(
        f"{summary['numStations']} stations, {summary['numWaypoints']} waypoints, "
        f"{summary['numLines']} lines"
    )
    if summary["trackLength"]:
        logger.info(f"Track length {summary['trackLength']:.2f} mi, level {summary['level']}")

    segments = build_interline_segments(system)
    geojson = segments_to_geojson(segments, system["stations"])
    logger.info(f"{len(segments)} interlined segments ({len(geojson['features'])} features)")

    if keywords:
        with GeoKeywordLookup() as lookup:
            future = lookup.keywords(system.get("title"), summary["centroid"], summary["maxDist"])
            summary["keywords"] = future.result()
        logger.info(f"Keywords: {', '.join(summary['keywords'])}")

    return summary, segments, geojson


# ── Main ─────────────────────────────────────────────────────────────

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Transit map summary and interline segment builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("system", help="Path to a system JSON document")
    p.add_argument("--keywords", action="store_true",
                   help="Reverse-geocode the centroid for search keywords")
    p.add_argument("--previous", metavar="GEOJSON",
                   help="Earlier segments.geojson to diff against")
    p.add_argument("--out", metavar="DIR", default=".",
                   help="Directory to write output files into")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    try:
        raw_system, raw_meta = load_document(args.system)
    except (OSError, ValueError) as exc:
        logger.error(f"Could not read {args.system}: {exc}")
        return 1

    system = sanitize_system(raw_system)
    meta = sanitize_meta(raw_meta, system)
    summary, segments, geojson = build_outputs(system, keywords=args.keywords)
    summary["meta"] = meta

    if args.previous:
        try:
            previous = segments_from_geojson(json.loads(Path(args.previous).read_text()))
        except (OSError, ValueError) as exc:
            logger.error(f"Could not read {args.previous}: {exc}")
            return 1
        changed = diff_interline_segments(previous, segments)
        summary["changedSegments"] = changed
        logger.info(f"{len(changed)} segment(s) changed since {args.previous}")

    out_dir = Path(args.out).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / SEGMENTS_FILE).write_text(json.dumps(geojson, indent=2))
    (out_dir / SUMMARY_FILE).write_text(json.dumps(summary, indent=2))
    logger.info(f"Wrote {out_dir / SEGMENTS_FILE} and {out_dir / SUMMARY_FILE}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
