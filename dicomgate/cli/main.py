#!/usr/bin/env python3
"""dicomgate CLI - run the gateway or check archive connectivity."""

import argparse
import asyncio
import sys

from dicomgate.settings import settings
from dicomgate.utils.logger import logger


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the dicomgate server."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting dicomgate at http://{host}:{port}")

    uvicorn.run(
        "dicomgate.api.app:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


async def echo_archive() -> bool:
    """Send C-ECHO to the configured archive."""
    from dicomgate.services.dicom import DicomNode, PynetdicomEngine, verify_peer

    engine = PynetdicomEngine(
        calling_aet=settings.dicom_aet,
        peer=DicomNode(aet=settings.pacs_aet, host=settings.pacs_host, port=settings.pacs_port),
        max_pdu=settings.dicom_max_pdu,
        timeout=settings.find_timeout,
    )
    return await verify_peer(engine)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="dicomgate", description="DICOMweb gateway in front of a DIMSE archive"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run the gateway server")
    run_parser.add_argument(
        "--host", type=str, default=None, help="Host to bind to (default: from settings)"
    )
    run_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default: from settings)"
    )

    # echo command
    subparsers.add_parser("echo", help="Verify connectivity to the archive with C-ECHO")

    args = parser.parse_args()

    if args.command == "run":
        run_server(args.host, args.port)
    elif args.command == "echo":
        ok = asyncio.run(echo_archive())
        sys.exit(0 if ok else 1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
