import argparse
import asyncio
import json
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

import httpx

from bitmap_oci.config import settings
from bitmap_oci.core.errors import BitmapOCIError
from bitmap_oci.index.store import PagedIndexStore, SatResolver
from bitmap_oci.ordinals.client import OrdinalsClient


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Dump the sats of an inclusive range of bitmaps as JSON."
    )
    parser.add_argument("start", type=int, help="First bitmap number")
    parser.add_argument("end", type=int, help="Last bitmap number (inclusive)")
    parser.add_argument("--output", "-o", help="Write to this file instead of stdout")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    async with httpx.AsyncClient(timeout=settings.request_timeout) as http_client:
        sats = SatResolver(PagedIndexStore(OrdinalsClient(http_client=http_client)))
        try:
            values = await sats.get_sats_range(args.start, args.end)
        except BitmapOCIError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    payload = json.dumps(values)
    if args.output:
        with open(args.output, "w") as fh:
            fh.write(payload)
        print(f"Wrote {len(values)} sats to {args.output}", file=sys.stderr)
    else:
        print(payload)
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
