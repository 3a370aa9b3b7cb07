#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "typer",
#     "httpx>=0.27",
#     "fastapi>=0.110",
# ]
# ///
"""
edge-cli: Show what musicedge would send upstream, without sending it.

Takes a query string, runs it through the router's intent decision and the
matching request builder, and prints the upstream call as JSON. No network.

Usage:
    ./edge-cli.py "types=search&name=Yesterday&count=5"
    ./edge-cli.py "target=http://mobi.kuwo.cn/stream/abc.mp3" --range bytes=0-1023
    ./edge-cli.py "types=url&id=12345&source=tencent" --pretty
"""

import json
import sys
from pathlib import Path
from urllib.parse import parse_qsl

import typer

# Add the src directory to the path so we can import musicedge
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from musicedge.audio import build_audio_call
from musicedge.metadata import build_metadata_call
from musicedge.protocol import AudioIntent, ProxyRejection
from musicedge.router import decide_intent, flatten_query

app = typer.Typer()


@app.command()
def explain(
    query: str = typer.Argument(..., help="Inbound query string, without the leading '?'"),
    method: str = typer.Option("GET", "--method", "-m", help="Inbound method (GET or HEAD)"),
    range_header: str = typer.Option("", "--range", "-r", help="Inbound Range header"),
    user_agent: str = typer.Option("", "--user-agent", "-u", help="Inbound User-Agent"),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print JSON output"),
):
    """Print the routing decision and upstream request for a query string."""
    params = flatten_query(parse_qsl(query.lstrip("?"), keep_blank_values=True))

    headers = {}
    if range_header:
        headers["range"] = range_header
    if user_agent:
        headers["user-agent"] = user_agent

    intent = decide_intent(params)

    try:
        if isinstance(intent, AudioIntent):
            call = build_audio_call(intent.target, method.upper(), headers)
        else:
            call = build_metadata_call(intent.params, headers)
    except ProxyRejection as e:
        typer.echo(f"Rejected: {e.status_code} {e.message}", err=True)
        raise typer.Exit(1)

    output = {
        "intent": type(intent).__name__,
        "method": call.method,
        "url": call.url,
        "params": dict(call.params) if call.params is not None else None,
        "headers": dict(call.headers),
    }

    if pretty:
        print(json.dumps(output, indent=2))
    else:
        print(json.dumps(output))


if __name__ == "__main__":
    app()
