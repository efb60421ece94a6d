#!/usr/bin/env python3
"""Run a parallel fan-out from a JSON config file and print the aggregated records.

Runs in-process by default; with --url the run is sent to a running orchestrator service.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

import httpx

from src.core.config.env import get_api_credential
from src.core.config.loader import load_run_config
from src.core.exceptions import AbortedOnFailure, ConfigError, GlobalTimeoutError, ValidationError
from src.orchestrator.runner import run_fanout


def _load_items(path: str | None) -> list[dict[str, Any]]:
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return data if isinstance(data, list) else [data]


def _run_remote(url: str, config_path: str, items: list[dict[str, Any]], trace: bool) -> list[dict[str, Any]]:
    raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
    body = {"source": raw.get("source"), "policy": raw.get("policy"), "items": items}
    post_url = f"{url.rstrip('/')}/run"
    if trace:
        print(f"[REQUEST] POST {post_url}", file=sys.stderr, flush=True)
        print(json.dumps(body, indent=2), file=sys.stderr, flush=True)
    r = httpx.post(post_url, json=body, timeout=None)
    if trace:
        print(f"[RESPONSE] {r.status_code}", file=sys.stderr, flush=True)
    r.raise_for_status()
    data = r.json()
    if data.get("status") != "completed":
        raise RuntimeError(data.get("error") or "run failed")
    return data.get("items") or []


def main():
    parser = argparse.ArgumentParser(description="Execute multiple webhook URLs in parallel and aggregate results.")
    parser.add_argument("config", help="Path to a run config JSON file (source + policy)")
    parser.add_argument("--items", default=None, help="JSON file with the input item(s) passed to the calls")
    parser.add_argument("--url", default=None, help="Orchestrator base URL; run remotely instead of in-process")
    parser.add_argument("--trace", action="store_true", help="Log every call and print the request sent to the service")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.trace else logging.WARNING,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        items = _load_items(args.items)
        if args.url:
            records = _run_remote(args.url, args.config, items, args.trace)
        else:
            config = load_run_config(args.config)
            records = asyncio.run(run_fanout(config.source, config.policy, items, credential=get_api_credential()))
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except (GlobalTimeoutError, AbortedOnFailure) as e:
        print(f"Run failed: {e}", file=sys.stderr)
        sys.exit(1)
    except httpx.ConnectError:
        print(f"Cannot reach orchestrator at {args.url}. Is it running?", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    print(json.dumps(records, indent=2, default=str))


if __name__ == "__main__":
    main()
