"""promptpack: dev launcher. Starts the API server in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13015")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")


def check_bundles(data_dir: Path) -> int:
    """Validate every stored bundle and print its findings. Returns an exit code."""
    from promptpack import storage
    from promptpack.routes.bundles import describe_finding
    from promptpack.validator import validate_bundle

    storage.init_storage(data_dir)
    failed = 0
    for bundle in storage.list_bundles():
        result = validate_bundle(bundle)
        status = "ok" if result.valid else f"{len(result.errors)} problem(s)"
        print(f"{bundle.id}: {status}")
        for finding in result.errors:
            where = finding.template_id or finding.variable or ""
            part = f" [{finding.part}]" if finding.part else ""
            print(f"  {where}{part}: {describe_finding(finding)}")
        failed += not result.valid
    return 1 if failed else 0


def main():
    parser = argparse.ArgumentParser(description="promptpack dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--check", action="store_true",
                        help="Validate all stored bundles and exit")
    args = parser.parse_args()

    if args.check:
        sys.exit(check_bundles(args.data_dir or Path("data")))

    # Build env for the subprocess so the server picks up the same data dir
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    procs: list[subprocess.Popen] = []

    def shutdown(*_):
        print("\nShutting down...")
        for p in procs:
            p.terminate()
        for p in procs:
            p.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting API on http://localhost:{PORT} ...")
    procs.append(subprocess.Popen(
        ["uv", "run", "uvicorn", "promptpack.app:create_app", "--factory", "--reload",
         "--host", HOST, "--port", PORT, "--log-level", LOG_LEVEL],
        cwd=ROOT, env=env,
    ))

    for p in procs:
        p.wait()


if __name__ == "__main__":
    main()
