"""
CLI entry point for Crystal API.
"""

import asyncio
import time
from typing import Optional

import structlog
import typer

from .accumulate import AccountResolver, AccumulateClient, AccumulateRPCConfig
from .config import get_settings
from .models import ResolvedAccount
from .proof import build_query_response

app = typer.Typer(
    name="crystal-api",
    help="Crystal Lite Client API for Accumulate accounts",
    add_completion=False,
)


@app.callback()
def configure_logging() -> None:
    """Crystal Lite Client API for Accumulate accounts."""
    # Configured per invocation so importing this module keeps the API logging setup
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: PORT or 8080)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """
    Start the HTTP API server.
    """
    from .main import run

    run(host=host, port=port, reload=reload)


async def _resolve(account: str, rpc_url: str, timeout: Optional[float]) -> tuple[Optional[ResolvedAccount], int]:
    resolver = AccountResolver(AccumulateClient(AccumulateRPCConfig(url=rpc_url, timeout=timeout)))
    start = time.perf_counter()
    try:
        resolved = await resolver.resolve(account)
    finally:
        await resolver.close()
    return resolved, int((time.perf_counter() - start) * 1000)


@app.command()
def prove(
    account: str = typer.Argument(..., help="Account URL (acc://...)"),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Skip the Accumulate lookup and use default account fields",
    ),
    rpc_url: Optional[str] = typer.Option(
        None,
        "--rpc-url",
        help="Accumulate JSON-RPC endpoint (default: ACCUMULATE_RPC_URL)",
    ),
) -> None:
    """
    Build the proof for an account and print it as JSON.
    """
    if not account:
        typer.echo("Account URL is required", err=True)
        raise typer.Exit(code=2)

    settings = get_settings()
    resolved: Optional[ResolvedAccount] = None
    query_time_ms = 0
    if not offline:
        resolved, query_time_ms = asyncio.run(
            _resolve(account, rpc_url or settings.accumulate_rpc_url, settings.accumulate_rpc_timeout)
        )

    response = build_query_response(account, resolved, query_time_ms)
    typer.echo(response.model_dump_json(by_alias=True, indent=2))


@app.command()
def version() -> None:
    """Show the API version."""
    from crystal_api import __version__
    typer.echo(f"crystal-api v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
