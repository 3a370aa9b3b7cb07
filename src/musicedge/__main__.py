"""Entry point for running musicedge directly."""

import os

import uvicorn


def main():
    """Run the musicedge server."""
    uvicorn.run(
        "musicedge.app:app",
        host=os.environ.get("MUSICEDGE_HOST", "0.0.0.0"),
        port=int(os.environ.get("MUSICEDGE_PORT", "8080")),
    )


if __name__ == "__main__":
    main()
