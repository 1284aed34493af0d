#!/usr/bin/env python3
"""Wait for a game server to come up, then start one session and summarise it.

Usage:
    python scripts/check_server.py --base-url http://127.0.0.1:8080 --wait 30
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace

from tenacity import retry, retry_if_exception, stop_after_delay, wait_fixed

from guessdex.core.errors import FailureKind, SessionFailure
from guessdex.core.models import SessionState
from guessdex.core.settings import load_settings
from guessdex.features.session.transport import SessionTransport


def _unreachable(exc: BaseException) -> bool:
    return isinstance(exc, SessionFailure) and exc.kind is FailureKind.TRANSPORT_ERROR


async def probe(transport: SessionTransport, wait_seconds: float) -> SessionState:
    @retry(stop=stop_after_delay(wait_seconds), wait=wait_fixed(0.5), retry=retry_if_exception(_unreachable), reraise=True)
    async def _start() -> SessionState:
        return await transport.start_session()

    return await _start()


async def _main(base_url: str | None, wait_seconds: float) -> int:
    settings = load_settings()
    if base_url:
        settings = replace(settings, base_url=base_url.rstrip("/"))
    async with SessionTransport(settings) as transport:
        try:
            state = await probe(transport, wait_seconds)
        except SessionFailure as exc:
            print(f"{settings.base_url}: {exc.kind.value}: {exc}")
            return 1
    available = len(state.available())
    print(f"{settings.base_url}: game {state.session_id} ({state.phase.value})")
    print(f"  roster: {len(state.roster)} species, {available} available")
    print(f"  expected exclusions: {state.expected_remaining}")
    if state.hint:
        print(f"  hint: {state.hint}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Check that a game server answers new-game requests.")
    parser.add_argument("--base-url", type=str, default=None, help="Game server URL")
    parser.add_argument("--wait", type=float, default=0.0, help="Seconds to keep retrying while unreachable")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(_main(args.base_url, args.wait)))


if __name__ == "__main__":
    main()
