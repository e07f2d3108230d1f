"""
Rebuild the vector index snapshot from the problem corpus.

Usage:
    python -m codementor.scripts.build_index [--dataset PATH] [--output PATH]
"""
import argparse
import asyncio
import logging

from codementor.core.config import Settings
from codementor.services.pipeline import build_pipeline
from codementor.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Embed the DSA corpus and write the index snapshot")
    parser.add_argument("--dataset", help="Corpus JSON file (default: DATASET_PATH)")
    parser.add_argument("--output", help="Snapshot file (default: EMBEDDINGS_PATH)")
    parser.add_argument("--env-file", help="Optional .env file to load")
    return parser.parse_args(argv)


async def run(settings: Settings) -> int:
    pipeline = build_pipeline(settings)
    count = await pipeline.rebuild_index()
    logger.info(f"[INDEX] Indexed {count} problems into {settings.index.embeddings_path}")
    return count


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env(args.env_file)
    if args.dataset:
        settings.index.dataset_path = args.dataset
    if args.output:
        settings.index.embeddings_path = args.output
    configure_logging(settings.log_level)

    count = asyncio.run(run(settings))
    return 0 if count else 1


if __name__ == "__main__":
    raise SystemExit(main())
