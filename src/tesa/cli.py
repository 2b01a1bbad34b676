"""
Command line for the sentiment review tools.

  tesa analyze reviews.csv --validation gold.csv --offline
  tesa metrics artifacts/tesa_results_full.csv --validation gold.csv
  tesa results artifacts/tesa_results_full.csv --status corrected --sort label
  tesa mapping show
  tesa mapping set 0 positive
"""
import argparse
import sys
from pathlib import Path
import yaml
from loguru import logger

from .config import get_settings, save_label_mapping
from .annotation import reconcile
from .annotation.filters import SORT_FIELDS, ResultsFilters
from .annotation.label_mapping import CODES, CLASSES, from_model_code, mapping_to_names, remap_preview, set_mapping
from .etl import csv_codec
from .etl.csv_codec import ParseError
from .modeling.metrics import compute_metrics, row_normalized
from .modeling.predict import BackendError, KeywordPredictor, PredictionClient
from .session import AnalysisSession
from .utils import setup_logging

def format_report(snapshot, normalize: bool = False) -> str:
    if snapshot is None:
        return "No metrics available: no row has both a true label and a model prediction."
    lines = [f"macro_F1={snapshot.macro_f1:.3f}  (n={snapshot.n_samples})"]
    for c in snapshot.per_class:
        lines.append(f"  {c.cls.value:<9} P={c.precision:.3f} R={c.recall:.3f} F1={c.f1:.3f} support={c.support}")
    lines.append("  confusion (true rows x predicted cols, negative/neutral/positive):")
    if normalize:
        for row in row_normalized(snapshot.confusion_matrix):
            lines.append("    " + " ".join(f"{v:>5.2f}" for v in row))
    else:
        for row in snapshot.confusion_matrix:
            lines.append("    " + " ".join(f"{int(v):>5}" for v in row))
    return "\n".join(lines)

def format_summary(summary: dict) -> str:
    lines = [
        f"rows={summary['total']} predicted={summary['predicted']} corrected={summary['corrected']} "
        f"with_true_label={summary['with_true_label']}"
    ]
    if summary["by_source"]:
        lines.append("  by source (negative/neutral/positive/total):")
        for src, c in summary["by_source"].items():
            lines.append(f"    {src[:40]:<40} {c[0]:>5} {c[1]:>5} {c[2]:>5} {c['total']:>6}")
    return "\n".join(lines)

def cmd_analyze(args, settings) -> int:
    session = AnalysisSession(settings)
    path = Path(args.input)
    session.load_input(path, file_name=path.name)
    if args.offline:
        predictor = KeywordPredictor()
    else:
        predictor = PredictionClient(settings.backend_base_url(), timeout=settings.backend.get("timeout", 30))
    session.run_analysis(predictor)
    if args.validation:
        session.apply_validation(Path(args.validation))

    out_dir = Path(args.out_dir)
    exp = settings.export
    csv_codec.write_export(out_dir / exp["results_file"],
                           session.export_results(include_id=args.include_id, include_text=args.include_text))
    csv_codec.write_export(out_dir / exp["full_file"], session.export_full())
    report = session.export_metrics_report()
    if report:
        csv_codec.write_export(out_dir / exp["metrics_file"], report)
    print(format_summary(session.summary()))
    print(format_report(session.metrics()))
    return 0

def _load_full(args):
    records = csv_codec.parse_full_csv(Path(args.results)).rows
    if args.validation:
        records = reconcile.apply_validation(records, csv_codec.parse_validation_csv(Path(args.validation)).rows)
    return records

def cmd_metrics(args, settings) -> int:
    snapshot = compute_metrics(_load_full(args), settings.label_mapping)
    print(format_report(snapshot, normalize=args.normalize))
    if args.out and snapshot is not None:
        csv_codec.write_export(args.out, csv_codec.export_metrics_report(snapshot))
    return 0

def cmd_results(args, settings) -> int:
    session = AnalysisSession(settings)
    session.records = _load_full(args)
    filters = ResultsFilters(
        sentiments=args.sentiment or [0, 1, 2],
        sources=args.src or [],
        status=args.status,
        search_mode=args.search_mode,
        search_query=args.search or "",
    )
    rows = session.results(filters, sort_by=args.sort, descending=args.desc)
    for r in rows:
        cls = from_model_code(r.effective_label)
        match = reconcile.is_match(r, settings.label_mapping)
        flag = "" if match is None else ("ok" if match else "MISS")
        print("\t".join([r.id, r.src or "", cls.value if cls else "", r.status, flag, r.text]))
    logger.info(f"{len(rows)} of {len(session.records)} rows shown")
    return 0

def cmd_mapping(args, settings) -> int:
    mapping = settings.label_mapping
    if args.action == "set":
        mapping = set_mapping(mapping, args.code, args.cls)
        save_label_mapping(mapping, args.config)
    for code, name in mapping_to_names(mapping).items():
        print(f"{code} -> {name}")
    preview = remap_preview(mapping)
    print("export rewrites model codes: " + ", ".join(f"{m}->{d}" for m, d in preview.items()))
    return 0

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tesa", description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("--config", default=None, help="YAML config (default: $TESA_CONFIG or ./config.yaml)")
    ap.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = ap.add_subparsers(dest="command", required=True)

    a = sub.add_parser("analyze", help="Predict a CSV with a 'text' column and write exports")
    a.add_argument("input")
    a.add_argument("--validation", default=None, help="CSV with text,label (and optional ID)")
    a.add_argument("--offline", action="store_true", help="Use the keyword predictor instead of the backend")
    a.add_argument("--out-dir", default="artifacts")
    a.add_argument("--include-id", action=argparse.BooleanOptionalAction, default=None)
    a.add_argument("--include-text", action=argparse.BooleanOptionalAction, default=None)
    a.set_defaults(func=cmd_analyze)

    m = sub.add_parser("metrics", help="Recompute metrics from a full results export")
    m.add_argument("results")
    m.add_argument("--validation", default=None)
    m.add_argument("--out", default=None, help="Write the metrics report CSV here")
    m.add_argument("--normalize", action="store_true", help="Show confusion rows as fractions")
    m.set_defaults(func=cmd_metrics)

    r = sub.add_parser("results", help="List rows of a full results export, filtered and sorted")
    r.add_argument("results")
    r.add_argument("--validation", default=None)
    r.add_argument("--sentiment", type=int, choices=CODES, action="append", help="Model code to keep (repeatable)")
    r.add_argument("--src", action="append", help="Source to keep (repeatable)")
    r.add_argument("--status", default="all", choices=["all", "corrected", "uncorrected"])
    r.add_argument("--search", default=None)
    r.add_argument("--search-mode", default="text", choices=["text", "src"])
    r.add_argument("--sort", default="id", choices=SORT_FIELDS)
    r.add_argument("--desc", action="store_true")
    r.set_defaults(func=cmd_results)

    mp = sub.add_parser("mapping", help="Show or change what dataset codes 0/1/2 mean")
    msub = mp.add_subparsers(dest="action", required=True)
    msub.add_parser("show")
    s = msub.add_parser("set")
    s.add_argument("code", type=int, choices=CODES)
    s.add_argument("cls", choices=[c.value for c in CLASSES])
    mp.set_defaults(func=cmd_mapping)
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings(args.config)
        setup_logging(args.log_level or settings.logging.get("level", "INFO"))
        return args.func(args, settings)
    except yaml.YAMLError as e:
        logger.error(f"Could not read config: {e}")
        return 1
    except (ParseError, BackendError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
