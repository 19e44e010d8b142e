"""
Invocation adapter between a serverless host and the wrapped ASGI application.

Each host invocation is one ASGI ``http`` call. The adapter strips the
``/api`` routing prefix, attaches the parsed query, resolves the application
through the injected loader and maps whatever happens next to a single
completion: the application's own response, or a generic JSON 500.
"""

import json
import logging

import anyio

from bridge.asgi import Receive, Scope, Send
from bridge.completion import Completion, CompletionChannel, CompletionKind, ObservedResponse
from bridge.loaders import CapabilityLoader, ResolutionError
from bridge.request import NormalizedRequest

logger = logging.getLogger(__name__)

ERROR_STATUS = 500
ERROR_PAYLOAD = {"error": "Internal Server Error"}
ERROR_BODY = json.dumps(ERROR_PAYLOAD, separators=(",", ":")).encode("utf-8")


class InvocationAdapter:
    """ASGI application that bridges one host invocation to the wrapped app."""

    def __init__(
        self,
        loader: CapabilityLoader,
        *,
        completion_timeout: float | None = None,
    ) -> None:
        self._loader = loader
        self.completion_timeout = completion_timeout

    @property
    def loader(self) -> CapabilityLoader:
        return self._loader

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle(scope, receive, send)
        elif scope_type == "lifespan":
            await self._lifespan(scope, receive, send)
        else:
            await self._passthrough(scope, receive, send)

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> Completion:
        """
        Run one invocation. Never raises; returns the recorded outcome.

        The invocation resolves as soon as the response is finalized or an
        error response has been written. Work the application still does after
        that point is cancelled, since the host may freeze the invocation once
        the response is out.
        """
        channel = CompletionChannel()
        response = ObservedResponse(send, channel)
        request = NormalizedRequest.from_scope(scope)
        log_context = {
            "method": request.method,
            "path": request.original_path,
            "route": request.path,
        }
        logger.debug("Dispatching invocation", extra=log_context)

        async with anyio.create_task_group() as task_group:
            task_group.start_soon(self._run, request, scope, receive, response, channel, log_context)
            with anyio.move_on_after(self.completion_timeout):
                await channel.wait()
            task_group.cancel_scope.cancel()

        if not channel.completed:
            logger.error(
                "Application did not complete within %.1fs",
                self.completion_timeout,
                extra=log_context,
            )
            await self._fail(response, channel, "timeout")

        outcome = await channel.wait()
        logger.debug(
            "Invocation resolved",
            extra={**log_context, "outcome": outcome.kind.value, "status": response.status},
        )
        return outcome

    async def _run(
        self,
        request: NormalizedRequest,
        scope: Scope,
        receive: Receive,
        response: ObservedResponse,
        channel: CompletionChannel,
        log_context: dict[str, str],
    ) -> None:
        try:
            application = self._loader.resolve()
            await application(request.to_scope(scope), receive, response.send)
        except ResolutionError:
            logger.exception("Application could not be resolved", extra=log_context)
            await self._fail(response, channel, "resolution_error")
        except Exception:  # noqa: BLE001
            logger.exception("API error", extra=log_context)
            await self._fail(response, channel, "application_error")
        else:
            if not channel.completed:
                logger.warning("Application returned without finishing the response", extra=log_context)
                await self._fail(response, channel, "no_response")

    async def _fail(self, response: ObservedResponse, channel: CompletionChannel, reason: str) -> None:
        # Signal only after writing; the invocation is torn down as soon as the channel resolves.
        if not response.finalized:
            try:
                if not response.started:
                    await response.send(
                        {
                            "type": "http.response.start",
                            "status": ERROR_STATUS,
                            "headers": [
                                (b"content-type", b"application/json"),
                                (b"content-length", str(len(ERROR_BODY)).encode("ascii")),
                            ],
                        },
                        observe=False,
                    )
                    await response.send({"type": "http.response.body", "body": ERROR_BODY}, observe=False)
                else:
                    # Status and headers are already on the wire; just end the body.
                    await response.send({"type": "http.response.body", "body": b""}, observe=False)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to write error response")
        channel.signal(CompletionKind.ERROR, reason)

    async def _lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            application = self._loader.resolve()
        except ResolutionError:
            logger.warning("Skipping lifespan; application could not be resolved", exc_info=True)
            return
        await application(scope, receive, send)

    async def _passthrough(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            application = self._loader.resolve()
        except ResolutionError:
            logger.exception("Application could not be resolved", extra={"scope_type": scope["type"]})
            if scope["type"] == "websocket":
                # Closing before accept rejects the handshake.
                await send({"type": "websocket.close", "code": 1011})
            return
        await application(scope, receive, send)
