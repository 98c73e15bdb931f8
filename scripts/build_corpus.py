#!/usr/bin/env python3
"""
Corpus Build Utility
Embeds approved copy lines (one per line of a text file) and writes the
embedding corpus consumed by the scan and index retrievers.
"""

import argparse
import json
import os
import sys
import tempfile
from pathlib import Path

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from copyreuse.core import config
from copyreuse.core.errors import EmbeddingUnavailableError
from copyreuse.vector.embeddings import DeterministicHashEmbedding


def read_lines(path: Path) -> list[str]:
    """Read non-blank lines, stripped, keeping the first occurrence of duplicates."""
    seen = set()
    lines = []
    with open(path, "r", encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line in seen:
                continue
            seen.add(line)
            lines.append(line)
    return lines


def build_corpus(lines, embedding_provider, output: Path, jsonl: bool = False) -> int:
    """
    Embed each line and write the corpus; returns the number of entries written.

    Entries go to a temporary file beside the output, which replaces the
    output only once every line has been embedded.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    handle = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=output.parent, prefix=f".{output.name}.", suffix=".tmp", delete=False
    )
    try:
        with handle:
            if not jsonl:
                handle.write("[\n")
            for line in lines:
                entry = {"line": line, "embedding": embedding_provider.embed_text(line)}
                if jsonl:
                    handle.write(json.dumps(entry, ensure_ascii=False) + "\n")
                else:
                    if written:
                        handle.write(",\n")
                    handle.write(json.dumps(entry, ensure_ascii=False))
                written += 1

                if written % 50 == 0:
                    print(f"  ... embedded {written}/{len(lines)} lines")
            if not jsonl:
                handle.write("\n]\n")
        os.replace(handle.name, output)
    except BaseException:
        os.unlink(handle.name)
        raise
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build the approved-copy embedding corpus")
    parser.add_argument("input", type=Path, help="Text file with one approved copy line per line")
    parser.add_argument("--output", type=Path, default=Path(config.CORPUS_PATH), help="Corpus file to write")
    parser.add_argument("--jsonl", action="store_true", help="Write JSON Lines instead of a JSON array")
    parser.add_argument("--hash", action="store_true", help="Use the offline deterministic hash embedding")
    args = parser.parse_args(argv)

    if not args.input.exists():
        print(f"ERROR: Input file not found: {args.input}")
        return 1

    lines = read_lines(args.input)
    print(f"Found {len(lines)} unique copy lines in {args.input}")
    if not lines:
        print("No lines to embed. Exiting.")
        return 0

    if args.hash:
        embedding_provider = DeterministicHashEmbedding(dimension=config.EMBED_DIMENSION)
    else:
        embedding_provider = config.get_embedding_provider()

    try:
        written = build_corpus(lines, embedding_provider, args.output, jsonl=args.jsonl)
    except EmbeddingUnavailableError as e:
        print(f"ERROR: Embedding failed: {e}")
        return 1

    print(f"✓ Wrote {written} entries to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
