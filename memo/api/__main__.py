"""Main entry point for the API server."""

import uvicorn
from rich.console import Console
from rich.panel import Panel

from memo.config import Config

console = Console()


def main():
    """Run the API server."""
    config = Config.from_env()

    console.print(
        Panel.fit(
            f"Host: {config.api_host}\n"
            f"Port: {config.api_port}\n"
            f"Database: {config.database_path}\n"
            f"Target retention: {config.request_retention:.0%}\n"
            f"Maximum interval: {config.maximum_interval} days",
            title="Starting Memo API",
        )
    )

    uvicorn.run(
        "memo.api.server:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
