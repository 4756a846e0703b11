#!/usr/bin/env python3
"""
CLI interface for the episode pipeline.

Commands:
    cut [episode]         Download, trim to the intro and publish the audio
    transcribe [episode]  Transcribe the published audio and store the quote
    run [episode]         cut + transcribe
    all [from] [to]       run for every episode in the inclusive range

Usage:
    python -m sse_quotes.pipeline cut 120
    python -m sse_quotes.pipeline run 120 --verbose
    python -m sse_quotes.pipeline all 103 313
    sse-quotes -v all 103 313 --concurrency 4

Re-running any command is safe: artifacts that already exist in storage are
skipped, so a batch re-run only processes the episodes that failed.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sse_quotes.config import PipelineConfig
from sse_quotes.exceptions import ConfigurationError
from sse_quotes.logger import ROOT_LOGGER_NAME, setup_logging
from sse_quotes.storage import CloudStorage
from sse_quotes.transcription import AssemblyAISpeechClient
from .orchestrator import print_summary, run_batch
from .stages import EpisodePipeline


logger = logging.getLogger("sse_quotes.cli")

COMMANDS_NEEDING_SPEECH = {"transcribe", "run", "all"}


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; global options are accepted before or after the command."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Stream stage-by-stage progress to the console",
    )
    common.add_argument(
        "--concurrency",
        type=positive_int,
        default=argparse.SUPPRESS,
        help="Maximum episodes processed at once (batch only)",
    )
    common.add_argument(
        "--log-file",
        default=argparse.SUPPRESS,
        help="Log file path (default: SSE_LOG_FILE or logs/sse_quotes.log)",
    )

    parser = argparse.ArgumentParser(
        prog="sse-quotes",
        description="Extract the intro quote of Soft Skills Engineering episodes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
        epilog="""
Examples:
  sse-quotes cut 120                 # Publish the trimmed intro of episode 120
  sse-quotes transcribe 120          # Transcribe it and store the quote
  sse-quotes run 120 -v              # Both, with progress output
  sse-quotes all 103 313             # Whole range, failures reported at the end
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    for name, help_text in (
        ("cut", "download, trim and upload the episode audio"),
        ("transcribe", "transcribe the uploaded audio and upload the quote"),
        ("run", "cut and transcribe"),
    ):
        sub = subparsers.add_parser(name, help=help_text, parents=[common])
        sub.add_argument(
            "episode", type=int, nargs="?", default=0, help="episode number (default: 0)"
        )

    batch = subparsers.add_parser(
        "all", help="run every episode in an inclusive range", parents=[common]
    )
    batch.add_argument(
        "from_episode", type=int, nargs="?", default=None, help="first episode"
    )
    batch.add_argument("to_episode", type=int, nargs="?", default=None, help="last episode")

    return parser


def resolve_batch_range(
    args: argparse.Namespace, config: PipelineConfig
) -> tuple[int, int]:
    """
    Fill missing batch bounds from configuration.

    Raises:
        ConfigurationError: If a bound is neither given nor configured
    """
    from_episode = args.from_episode if args.from_episode is not None else config.batch_from
    to_episode = args.to_episode if args.to_episode is not None else config.batch_to
    if from_episode is None or to_episode is None:
        raise ConfigurationError(
            "Episode range required: pass 'all FROM TO' or set SSE_BATCH_FROM and SSE_BATCH_TO"
        )
    return from_episode, to_episode


def build_pipeline(config: PipelineConfig, with_speech: bool) -> EpisodePipeline:
    """Construct the storage and speech clients once for the whole process."""
    storage = CloudStorage(region=config.region, endpoint=config.storage_endpoint)
    speech_client = None
    if with_speech:
        speech_client = AssemblyAISpeechClient(config.speech_api_key)
    return EpisodePipeline(storage, config, speech_client)


async def execute(args: argparse.Namespace, pipeline: EpisodePipeline, config: PipelineConfig) -> int:
    """Run the selected command; returns the process exit code."""
    command = args.command

    if command == "cut":
        skipped, audio_url = await pipeline.cut(args.episode)
        state = "already uploaded" if skipped else "uploaded"
        print(f"Episode {args.episode}: audio {state} ({audio_url})")
        return 0

    if command == "transcribe":
        skipped, quote = await pipeline.transcribe(args.episode)
        print(f"Episode {args.episode}: " + ("transcript already uploaded" if skipped else quote))
        return 0

    if command == "run":
        result = await pipeline.run(args.episode)
        if result.quote:
            print(f"Episode {result.episode}: {result.quote}")
        else:
            print(f"Episode {result.episode}: already complete")
        return 0

    from_episode, to_episode = resolve_batch_range(args, config)
    concurrency = getattr(args, "concurrency", None)
    if concurrency is None:
        concurrency = config.max_concurrency
    summary = await run_batch(
        from_episode, to_episode, pipeline, max_concurrency=concurrency
    )
    print_summary(summary)
    return 0 if summary.failure_count == 0 else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function"""
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = getattr(args, "verbose", False)

    try:
        config = PipelineConfig.from_env()
    except ConfigurationError as e:
        print(f"✗ Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        logger_name=ROOT_LOGGER_NAME,
        log_file=getattr(args, "log_file", None) or config.log_file,
        verbose=verbose,
    )

    if args.command == "all" and (args.from_episode is None or args.to_episode is None):
        try:
            resolve_batch_range(args, config)
        except ConfigurationError as e:
            parser.error(str(e))

    try:
        pipeline = build_pipeline(config, args.command in COMMANDS_NEEDING_SPEECH)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"✗ Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return asyncio.run(execute(args, pipeline, config))

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Failed {args.command}: {type(e).__name__}: {e}")
        print(f"Failed {args.command}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
