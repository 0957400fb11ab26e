import asyncio
import logging
import os
import sys

from cloudops_mcp.arguments import Parser
from cloudops_mcp.server import amain

CONFIG_FILES = ("/etc/cloudops/mcp.ini", "~/.config/cloudops/mcp.ini")

# chatty per-request loggers of the HTTP stack
QUIET_LOGGERS = ("httpx", "httpcore", "mcp.server.lowlevel.server")


def config_files() -> list[str]:
    """Config files to read, later ones overriding earlier ones."""
    override = os.getenv("CLOUDOPS_MCP_CONFIG")
    if override:
        return [override]
    return list(CONFIG_FILES)


def configure_logging(level: int) -> None:
    # stdout carries the MCP stdio transport
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s", stream=sys.stderr)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def main() -> None:
    parser = Parser(config_files=config_files(), auto_env_var_prefix="CLOUDOPS_MCP_")
    parser.parse_args()

    configure_logging(parser.log_level)
    try:
        asyncio.run(amain(parser))
    except KeyboardInterrupt:
        logging.info("Gracefully exited on keyboard interrupt")


if __name__ == "__main__":
    main()
