"""
Serve the approval workflow API.

Usage:
    python run.py                     # 127.0.0.1:8000
    python run.py --reload            # Auto-reload while editing
    python run.py --host 0.0.0.0 --workers 4
"""
import argparse
import uvicorn


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the procurement approval workflow API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; forced to 1 with --reload"
    )
    return parser.parse_args(argv)


def main():
    args = parse_args()
    workers = 1 if args.reload else args.workers

    print(f"Approval workflow API on http://{args.host}:{args.port} (workers={workers}, reload={args.reload})")

    # The app installs its own JSON logging on import
    uvicorn.run(
        "approvals.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_config=None,
    )


if __name__ == "__main__":
    main()
