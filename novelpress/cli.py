from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from . import config, packaging, sources
from .errors import NovelError
from .models import Work

logger = logging.getLogger(__name__)

FORMATS = ("epub", "txt", "json")


def write_work(work: Work, out_dir: Path, fmt: str) -> List[str]:
    if fmt == "epub":
        return packaging.package_epubs(work, str(out_dir))
    if fmt == "txt":
        return [packaging.package_txt(work, str(out_dir))]
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{packaging.sanitize_filename(work.display_name)}.json"
    path.write_text(json.dumps(work.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return [str(path)]


async def run(urls: List[str], settings: config.Settings, fmt: str) -> int:
    """Extract and write every work in turn; return the number of failures."""
    failures = 0
    async with settings.make_fetcher() as fetcher:
        for url in urls:
            logger.info("Starting %s", url)
            try:
                work = await sources.make_work(url, fetcher, max_workers=settings.max_workers)
                paths = write_work(work, settings.output_dir, fmt)
            except (NovelError, OSError) as e:
                logger.error("%s failed: %s", url, e)
                failures += 1
                continue
            for path in paths:
                print(path)
            logger.info("Finished %s (%s)", work.display_name, url)
    return failures


def main(argv: Optional[list] = None) -> int:
    settings = config.load_settings()
    parser = argparse.ArgumentParser(
        prog="novelpress",
        description="Download serialized novels from Kakuyomu or Narou and package them",
    )
    parser.add_argument("urls", nargs="+", help="Table-of-contents address of each work")
    parser.add_argument("--out-dir", default=str(settings.output_dir), help="Directory for output files")
    parser.add_argument("--format", choices=FORMATS, default="epub", help="Output format (default: epub)")
    parser.add_argument("--max-workers", type=int, default=settings.max_workers,
                        help="Concurrent chapter fetches for sites that allow it")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args(argv)

    settings.output_dir = Path(args.out_dir)
    settings.max_workers = args.max_workers
    config.configure_logging("DEBUG" if args.verbose else settings.log_level)

    failures = asyncio.run(run(args.urls, settings, args.format))
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
