import argparse
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from travel_pricing.config.logger import setup_logging
from travel_pricing.config.settings import get_settings


def main():
    parser = argparse.ArgumentParser(description="Serve the Travel Pricing API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on source changes")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)
    print(f"Starting Travel Pricing API on {args.host}:{args.port}")
    print(f"  Tables:  {settings.data_dir}")
    print(f"  Storage: {settings.storage_dir}")

    uvicorn.run(
        "travel_pricing.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=[str(src_path)] if args.reload else None,
        log_level=settings.log_level.lower(),
    )

if __name__ == "__main__":
    main()
