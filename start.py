import argparse
import logging

import uvicorn

from focusflow.config import get_settings


def main(argv=None):
    """Serves the Focus Flow API on the configured host and port."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Focus Flow scheduling API.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    logging.info(f"Serving Focus Flow API on http://{args.host}:{args.port} "
                 f"({settings.storage} storage, data in {settings.data_dir})")
    # uvicorn handles Ctrl+C itself and shuts the app down cleanly
    uvicorn.run("focusflow.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
