#!/usr/bin/env python3
"""Run the Memo API server."""

import uvicorn
from rich.console import Console

from memo.config import Config


console = Console()


def main() -> None:
    console.rule("[bold blue]Starting Memo API Server")

    config = Config.from_env()

    console.print(f"Host: {config.api_host}")
    console.print(f"Port: {config.api_port}")
    console.print(f"Database: {config.database_path}")
    console.print()

    console.print("Start a study session against this server with:")
    console.print(f"  python -m memo.study --deck_id 1 --base_url {config.base_url}")
    console.print()

    uvicorn.run(
        "memo.api.server:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
