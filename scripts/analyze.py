#!/usr/bin/env python3
"""Send content to a running Veritas service and print the verdict."""

import argparse
import json

import httpx


def main():
    parser = argparse.ArgumentParser(description="Analyze a URL or a piece of text with Veritas")
    parser.add_argument("input", help="URL or text to analyze")
    parser.add_argument("--url", default="http://localhost:8000/api/analyze")
    parser.add_argument("--mode", default="auto", choices=["auto", "text", "link"])
    parser.add_argument("--key", default="", help="Client API key, if the server requires one")
    parser.add_argument("--timeout", type=float, default=35.0)
    args = parser.parse_args()

    headers = {}
    if args.key:
        headers["x-veritas-key"] = args.key

    payload = {
        "mode": args.mode,
        "input": args.input,
    }

    resp = httpx.post(args.url, json=payload, headers=headers, timeout=args.timeout)
    print(f"Status: {resp.status_code}")
    print(json.dumps(resp.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
