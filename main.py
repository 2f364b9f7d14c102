import argparse

import uvicorn

from cbt.config import HOST, PORT


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CBT assessment server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--reload", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    uvicorn.run(
        "cbt.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
