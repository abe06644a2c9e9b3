"""Match raw float32 embedding files against a gallery manifest.

Implementation lives in `reid/gallery/`; this file only holds the CLI.
"""

from __future__ import annotations

import argparse
import json
import sys

from pathlib import Path
from typing import List, Optional

from reid.config import DEFAULT_THRESHOLD
from reid.gallery import EmbeddingsIdentifier, GalleryError, read_feature_file
from reid.utils.log import get_logger
from reid.utils.serializer import serialize_match

logger = get_logger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Identify query embeddings against a gallery manifest")
    parser.add_argument("manifest", help="Gallery manifest JSON path")
    parser.add_argument("queries", nargs="+", help="Raw float32 query embedding files")
    parser.add_argument("--threshold", "-t", type=float, default=DEFAULT_THRESHOLD, help="Cosine similarity threshold")
    parser.add_argument(
        "--device",
        type=str,
        default="auto",
        choices=["auto", "cpu", "gpu"],
        help="auto/cpu/gpu (auto: GPU when CUDA is available)",
    )
    parser.add_argument("--output-json", "-j", default=None, help="Write results to this JSON file")
    args = parser.parse_args(argv)

    identifier = EmbeddingsIdentifier(args.manifest, threshold=args.threshold, device=args.device)
    if not identifier.ok:
        logger.error(f"Gallery unusable: {identifier.error}")
        return 1
    if identifier.size() == 0:
        logger.warning("Gallery has no identities; every query will be unmatched")

    gallery = identifier.gallery
    expected_dim = gallery.dim if gallery.num_embeddings else None
    embeddings = []
    for query in args.queries:
        try:
            embeddings.append(read_feature_file(Path(query), expected_dim=expected_dim))
        except GalleryError as e:
            logger.error(f"Failed to read query {query}: {e}")
            return 1

    results = identifier.identify(embeddings)
    records = []
    for query, result in zip(args.queries, results):
        records.append(serialize_match(result, identifier.label_of(result.identity_id), query=query))
        logger.info(f"{query}: {identifier.describe(result)}")

    payload = json.dumps(records, ensure_ascii=False, indent=2)
    if args.output_json:
        Path(args.output_json).write_text(payload, encoding="utf-8")
        logger.info(f"Results saved to {args.output_json}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
