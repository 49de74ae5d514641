"""
Command-line entry point: analyze the compensation for one job record.

Reads a job record (JSON, the stored job shape) or raw job text, runs it
through CompensationAnalysisService and prints the response envelope.

Usage:
    python -m src.analyze --job-file job.json --user-location "Austin, TX"
    python -m src.analyze --text "Senior SRE at Acme, Berlin" --location Berlin
    python -m src.analyze --job-file job.json --recompute
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from src.cache import AnalysisCache
from src.common.completion import CompletionClient, LangChainCompletionClient
from src.common.config import Config
from src.common.logger import get_logger, set_global_debug_mode, setup_logging
from src.common.repositories import create_analysis_cache_repository
from src.services import AnalysisRequest, CompensationAnalysisService

logger = get_logger(__name__)


def build_service(client: Optional[CompletionClient] = None) -> CompensationAnalysisService:
    """Service wired from Config: completion client plus (optionally persistent) cache."""
    cache = AnalysisCache(repository=create_analysis_cache_repository())
    return CompensationAnalysisService(client=client or LangChainCompletionClient(), cache=cache)


def build_request(args: argparse.Namespace) -> AnalysisRequest:
    if args.job_file:
        with open(args.job_file, "r", encoding="utf-8") as f:
            job: Dict[str, Any] = json.load(f)
        request = AnalysisRequest.from_job(
            job,
            user_id=args.user_id,
            user_location=args.user_location,
            custom_context=args.context,
            profile_hash=args.profile,
        )
        if args.location:
            request.job_location = args.location
        return request

    return AnalysisRequest(
        job_description_text=args.text,
        job_id=args.job_id,
        user_id=args.user_id,
        job_location=args.location,
        company=args.company,
        user_location=args.user_location,
        profile_hash=args.profile,
    )


def run_analysis(
    request: AnalysisRequest,
    service: CompensationAnalysisService,
    force_refresh: bool = False,
    recompute: bool = False,
) -> Dict[str, Any]:
    """Run one analysis and return the response envelope."""
    run_logger = get_logger(__name__, run_id=request.job_id or "adhoc", stage="analyze")
    run_logger.info(f"Analyzing job {request.job_id or '-'} for user {request.user_id or '-'}")

    if recompute:
        result = service.recompute_sync(request)
    else:
        result = service.analyze_sync(request, force_refresh=force_refresh)

    if result.success:
        run_logger.info(f"Done in {result.duration_ms}ms (cached={result.metadata.get('cached')})")
    else:
        run_logger.warning(f"Failed: {result.message}")
    return result.to_dict()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analyze the compensation for one job",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Analyze a stored job record
    python -m src.analyze --job-file job.json

    # Analyze raw text, relative to where the user lives
    python -m src.analyze --text "Staff Engineer at Acme" --location "Berlin" --user-location "Lisbon"

    # Bypass the cache and fail loudly on an unparseable synthesis
    python -m src.analyze --job-file job.json --recompute
        """
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--job-file", help="Path to a job record (JSON)")
    source.add_argument("--text", help="Raw job description text")

    parser.add_argument("--job-id", default="", help="Job id (with --text)")
    parser.add_argument("--user-id", default="", help="Requesting user id")
    parser.add_argument("--location", help="Job location (overrides the record)")
    parser.add_argument("--company", help="Hiring company (with --text)")
    parser.add_argument("--user-location", help="Where the user lives")
    parser.add_argument("--context", help="Additional context appended to the job text")
    parser.add_argument("--profile", help="Expense profile hash")
    parser.add_argument("--force-refresh", action="store_true", help="Skip the cache lookup")
    parser.add_argument("--recompute", action="store_true", help="Force refresh with strict parsing")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, client: Optional[CompletionClient] = None) -> int:
    args = parse_args(argv)

    setup_logging(level=args.log_level, format=Config.LOG_FORMAT)
    set_global_debug_mode(args.debug or Config.DEBUG_MODE)
    logger.debug(Config.summary())

    if client is None:
        try:
            Config.validate()
        except ValueError as e:
            logger.error(str(e))
            return 2

    payload = run_analysis(
        build_request(args),
        build_service(client),
        force_refresh=args.force_refresh,
        recompute=args.recompute,
    )
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if "error" not in payload else 1


if __name__ == "__main__":
    sys.exit(main())
