import contextvars
import logging
from contextlib import AsyncExitStack

import uvicorn

from cloudops_mcp.app import create_mcp_app
from cloudops_mcp.arguments import Parser, ServerMode
from cloudops_mcp.awaiter import RetryPolicy
from cloudops_mcp.cache import Cache
from cloudops_mcp.compute import ComputeClient
from cloudops_mcp.context import COMPUTE, KMS, PARAMETERS, ContextMiddleware
from cloudops_mcp.kms import KmsClient
from cloudops_mcp.parameters import ParameterManagerClient

log = logging.getLogger(__name__)


async def amain(parser: Parser) -> None:
    quota_project = parser.quota_project or None

    async with AsyncExitStack() as stack:
        cache = await stack.enter_async_context(
            Cache(
                db_path=parser.cache.path.expanduser(),
                retention_days=parser.cache.prune_days,
            )
        )
        compute = await stack.enter_async_context(
            ComputeClient(
                base_url=parser.endpoint.compute,
                token=parser.token,
                cache=cache,
                quota_project=quota_project,
                deadline=parser.wait.deadline or None,
                retry=RetryPolicy(attempts=parser.wait.retry_attempts, delay=parser.wait.retry_delay),
                poll_concurrency=parser.wait.poll_concurrency,
            )
        )
        parameters = await stack.enter_async_context(
            ParameterManagerClient(
                base_url=parser.endpoint.parameter_manager,
                regional_url=parser.endpoint.parameter_manager_regional,
                token=parser.token,
                cache=cache,
                quota_project=quota_project,
            )
        )
        kms = await stack.enter_async_context(
            KmsClient(base_url=parser.endpoint.kms, token=parser.token, cache=cache, quota_project=quota_project)
        )

        COMPUTE.set(compute)
        PARAMETERS.set(parameters)
        KMS.set(kms)

        mcp = create_mcp_app()

        if parser.mode == ServerMode.HTTP:
            log.info("Starting MCP server on http://%s:%d", parser.http.listen, parser.http.port)

            app = mcp.streamable_http_app()
            app.add_middleware(ContextMiddleware, ctx=contextvars.copy_context())

            config = uvicorn.Config(
                app,
                host=parser.http.listen,
                port=parser.http.port,
                log_level="info",
            )
            server = uvicorn.Server(config)
            await server.serve()
        elif parser.mode == ServerMode.STDIO:
            log.info("Starting MCP server in stdio mode")
            await mcp.run_stdio_async()
        else:
            raise ValueError(f"Unsupported server mode: {parser.mode}")
