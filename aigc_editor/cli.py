from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from aigc_editor.errors import AigcEditorError
from aigc_editor.pipeline import MODES, run_pipeline


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="aigc-edit",
        description="AIGC risk detection and format-preserving paragraph rewriting for .docx theses"
    )

    ap.add_argument("input_docx", help="Path to input .docx")
    ap.add_argument("--out", default="./aigc_out", help="Output directory")
    ap.add_argument(
        "--mode", default="detect",
        choices=list(MODES),
        help="Run mode: detect (report only), patch (apply --replacements), rewrite (LLM rewrites of flagged paragraphs)"
    )
    ap.add_argument("--replacements", default=None, help="JSON file mapping block ids (p-N) to replacement text")
    ap.add_argument("--lexicon", default=None, help="Lexicon YAML overriding the packaged one")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    # LLM options
    llm_group = ap.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--use-judge",
        action="store_true",
        help="Fuse a model second opinion into the scores of high-risk paragraphs"
    )
    llm_group.add_argument(
        "--anthropic-api-key",
        default=os.environ.get("ANTHROPIC_API_KEY"),
        help="Anthropic API key (or set ANTHROPIC_API_KEY env var)"
    )
    llm_group.add_argument(
        "--llm-model",
        default="claude-sonnet-4-20250514",
        help="Claude model for rewriting and judging (default: claude-sonnet-4-20250514)"
    )
    llm_group.add_argument("--min-score", type=int, default=35, help="Rewrite paragraphs scoring at least this much")
    llm_group.add_argument("--max-rewrites", type=int, default=20, help="Rewrite at most this many paragraphs")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.mode == "patch" and not args.replacements:
        ap.error("--mode patch requires --replacements")
    if (args.mode == "rewrite" or args.use_judge) and not args.anthropic_api_key:
        ap.error("--mode rewrite and --use-judge require --anthropic-api-key or ANTHROPIC_API_KEY environment variable")

    try:
        payload = run_pipeline(
            input_docx=args.input_docx,
            out_dir=args.out,
            mode=args.mode,
            replacements_path=args.replacements,
            lexicon_path=args.lexicon,
            use_judge=args.use_judge,
            anthropic_api_key=args.anthropic_api_key,
            llm_model=args.llm_model,
            min_score=args.min_score,
            max_rewrites=args.max_rewrites,
        )
    except (AigcEditorError, ValueError, OSError) as e:
        print(f"aigc-edit: error: {e}", file=sys.stderr)
        return 2

    # Build output summary
    stats = payload["stats"]
    output = {
        "bundle_dir": payload["bundle_dir"],
        "mode": payload["mode"],
        "blocks": stats["blocks"],
        "overall_risk_score": stats["overall_risk_score"],
        "overall_risk_level": stats["overall_risk_level"],
    }
    if payload["judge"]["enabled"]:
        output["judged"] = payload["judge"]["judged"]
    if "replacements_applied" in stats:
        output["replacements_applied"] = stats["replacements_applied"]
        output["overall_risk_score_after"] = stats["overall_risk_score_after"]
        output["findings_total"] = stats["findings_total"]

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
