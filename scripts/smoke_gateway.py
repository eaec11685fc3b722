"""Simple smoke test client for a running Factify gateway.

Usage:
    python scripts/smoke_gateway.py --api http://127.0.0.1:8080 \
        --apikey hf_xxx --model distilbert-base-uncased-finetuned-sst-2-english \
        "The moon landing happened in 1969."

    python scripts/smoke_gateway.py --kind image --file ./sample.jpg \
        --apikey hf_xxx --model google/vit-base-patch16-224 "caption"

Defaults:
    - API: http://127.0.0.1:8080
    - Kind: text
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import requests

DEFAULT_TEXT = "The Eiffel Tower is located in Berlin."


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Factify gateway smoke test")
    parser.add_argument("text", nargs="?", default=DEFAULT_TEXT, help="Text (or image caption) to analyze")
    parser.add_argument("--api", default="http://127.0.0.1:8080", help="Gateway base url")
    parser.add_argument("--apikey", required=True, help="Inference API key forwarded as bearer token")
    parser.add_argument("--model", default="", help="Model id on the inference host")
    parser.add_argument("--kind", default="text", choices=["text", "image", "health"], help="Endpoint to call")
    parser.add_argument("--file", default=None, help="Image file for --kind image")
    parser.add_argument(
        "--option",
        action="append",
        default=None,
        help="enableOptions entry to switch on (repeatable, default: factCheck)",
    )
    parser.add_argument("--timeout", type=float, default=90.0, help="Request timeout seconds")
    return parser.parse_args()


def post_text(api: str, text: str, apikey: str, model: str, options: list[str], timeout: float) -> requests.Response:
    payload = {
        "text": text,
        "enableOptions": {name: True for name in options},
        "apikey": apikey,
        "model": model,
    }
    return requests.post(f"{api}/analyze/text", json=payload, timeout=timeout)


def post_image(api: str, file_path: str, text: str, apikey: str, model: str, timeout: float) -> requests.Response:
    path = Path(file_path)
    with path.open("rb") as fh:
        return requests.post(
            f"{api}/analyze/image",
            files={"file": (path.name, fh, "image/jpeg")},
            data={"apikey": apikey, "model": model, "text": text},
            timeout=timeout,
        )


def main() -> int:
    args = parse_args()
    try:
        if args.kind == "health":
            resp = requests.get(f"{args.api}/analyze/health", timeout=args.timeout)
        elif args.kind == "image":
            if not args.file:
                raise RuntimeError("--file is required for --kind image")
            resp = post_image(args.api, args.file, args.text, args.apikey, args.model, args.timeout)
        else:
            resp = post_text(args.api, args.text, args.apikey, args.model, args.option or ["factCheck"], args.timeout)
    except Exception as exc:  # noqa: BLE001
        print(f"smoke test failed: {exc}", file=sys.stderr)
        return 1

    print(f"status={resp.status_code}")
    print(resp.text)
    if resp.status_code != 200 or resp.text.startswith("Error: "):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
