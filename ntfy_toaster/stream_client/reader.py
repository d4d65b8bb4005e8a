"""
Topic Stream Reader

Opens the newline-delimited JSON stream for one topic and turns its body
into a sequence of read results. The reading side runs in its own task so
the owning subscription can abandon a read that is parked on the socket.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Union

import aiohttp

from ntfy_toaster.core.types import ConnectError, DecodeError, StreamError
from ntfy_toaster.models.event import Event, decode_event
from ntfy_toaster.models.topic import Topic

logger = logging.getLogger(__name__)

NDJSON_CONTENT_TYPE = "application/x-ndjson"


@dataclass(frozen=True)
class Continuing:
    """A decoded event; the stream is still open."""

    event: Event


@dataclass(frozen=True)
class Ended:
    """The server closed the stream without an error."""


@dataclass(frozen=True)
class Failed:
    """Reading the stream failed."""

    error: StreamError

    @property
    def reason(self) -> str:
        return str(self.error)


ReadResult = Union[Continuing, Ended, Failed]
Emit = Callable[[ReadResult], None]


class StreamReader:
    """
    Reads one topic's JSON stream.

    connect() performs the HTTP request; pump() drains the response body,
    emitting one Continuing per decoded line and exactly one terminal
    Ended or Failed.
    """

    def __init__(self, session: aiohttp.ClientSession, topic: Topic) -> None:
        self._session = session
        self._topic = topic
        self.lines_read = 0
        self.decode_errors = 0

    @property
    def topic(self) -> Topic:
        return self._topic

    async def connect(self) -> aiohttp.ClientResponse:
        """
        Open the stream.

        Raises:
            ConnectError: If the server is unreachable or answers with an
                error status.
        """
        url = self._topic.stream_url
        headers = {"Accept": NDJSON_CONTENT_TYPE, **self._topic.headers}

        logger.info(f"Subscribing to {url}")
        try:
            response = await self._session.get(url, headers=headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise ConnectError(f"Failed to connect: {e}", url=url) from e

        if response.status >= 400:
            response.release()
            raise ConnectError(
                f"Connection failed with status {response.status}",
                url=url,
                status=response.status,
            )

        return response

    async def pump(self, response: aiohttp.ClientResponse, emit: Emit) -> None:
        """Read the body line by line until it ends or fails."""
        url = self._topic.stream_url
        try:
            async for raw in response.content:
                line = raw.strip()
                if not line:
                    continue
                self.lines_read += 1

                try:
                    event = decode_event(line)
                except DecodeError as e:
                    self.decode_errors += 1
                    logger.warning(
                        "Skipping undecodable line",
                        extra={"url": url, "error": str(e)},
                    )
                    continue

                logger.debug(f"Received data: {dict(event.raw)}")
                emit(Continuing(event))

        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning(f"Error reading response from {url}: {e}")
            emit(Failed(StreamError(f"Stream read failed: {e}", url=url)))
            return
        except ValueError as e:
            # aiohttp's StreamReader reports an over-long line as ValueError
            logger.warning(f"Error reading response from {url}: {e}")
            emit(Failed(StreamError(f"Stream read failed: {e}", url=url)))
            return
        except Exception as e:
            logger.error(f"Unexpected error reading {url}: {e}", exc_info=True)
            emit(Failed(StreamError(f"Stream read crashed: {e}", url=url)))
            return

        logger.warning(f"Subscription to {url} ended unexpectedly")
        emit(Ended())
