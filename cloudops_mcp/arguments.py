from enum import Enum
from pathlib import Path

import argclass


class ServerMode(str, Enum):
    STDIO = "stdio"
    HTTP = "http"


class HTTPGroup(argclass.Group):
    listen: str = argclass.Argument(default="127.0.0.1")
    port: int = argclass.Argument(default=9453)


class Cache(argclass.Group):
    path: Path = Path("~") / ".cache" / "cloudops_mcp" / "cache.db"
    prune_days: int = argclass.Argument(
        default=30,
        help="Delete cached records older than this many days",
    )


class Wait(argclass.Group):
    deadline: float = argclass.Argument(
        default=0.0,
        help="Give up waiting for an operation after this many seconds (0 waits forever)",
    )
    retry_attempts: int = argclass.Argument(
        default=0,
        help="Retry a failed poll this many times on transient errors (0 fails fast)",
    )
    retry_delay: float = argclass.Argument(default=1.0, help="Seconds between poll retries")
    poll_concurrency: int = argclass.Argument(default=10, help="Maximum simultaneously open long-polls")


class Endpoints(argclass.Group):
    compute: str = argclass.Argument(default="https://compute.googleapis.com/compute/v1")
    parameter_manager: str = argclass.Argument(default="https://parametermanager.googleapis.com/v1")
    parameter_manager_regional: str = argclass.Argument(
        default="https://parametermanager.{location}.rep.googleapis.com/v1",
        help="Regional Parameter Manager endpoint template, {location} is substituted",
    )
    kms: str = argclass.Argument(default="https://cloudkms.googleapis.com/v1")


class Parser(argclass.Parser):
    token: str = argclass.Argument(
        secret=True,
        help="OAuth2 access token, e.g. from `gcloud auth print-access-token`",
        required=True,
    )
    quota_project: str = argclass.Argument(default="", help="Project billed for API quota (optional)")
    mode: ServerMode = argclass.EnumArgument(
        ServerMode, default=ServerMode.STDIO, lowercase=True, help="Server transport mode"
    )

    log_level: int = argclass.LogLevel
    http: HTTPGroup = HTTPGroup()
    cache: Cache = Cache()
    wait: Wait = Wait()
    endpoint: Endpoints = Endpoints()
