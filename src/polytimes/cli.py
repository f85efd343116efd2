"""CLI entry point for The Polymarket Times API."""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="The Polymarket Times API")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    args = parser.parse_args()

    uvicorn.run(
        "polytimes.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
