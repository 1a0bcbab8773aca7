"""Channel execution helpers for the Things3 CLI.

Things3 is driven through two channels:

* the *automation channel*: AppleScript run through ``osascript``. It returns
  the script's stdout synchronously and is used for reads, deletes and
  status changes.
* the *activation channel*: ``things:///`` URLs handed to the system ``open``
  command. It is fire-and-forget; the call returns once ``open`` has accepted
  the URL, so callers wait a settle delay before assuming Things3 has
  processed it.

Returned script output is *stdout* with leading/trailing whitespace stripped.
Spawn failures, non-zero exits and timeouts raise distinct
:class:`~things_api.errors.ChannelError` subclasses.
"""
from __future__ import annotations

import logging
import os
import subprocess
import tempfile
import time
from typing import Callable, Final, Optional

from utils.config import ThingsConfig
from utils.logger import get_logger

from . import templates
from .errors import ChannelExitError, ChannelSpawnError, ChannelTimeoutError

__all__: Final = [
    "AUTOMATION_CHANNEL",
    "ACTIVATION_CHANNEL",
    "ChannelExecutor",
]

AUTOMATION_CHANNEL: Final = "osascript"
ACTIVATION_CHANNEL: Final = "url-scheme"

# Only the first part of a URL is logged; JSON payloads can be long.
_URL_LOG_PREFIX = 200


def _write_temp_applescript(script: str) -> str:
    """Write *script* to a temporary *.applescript* file and return its path."""
    tmp_file = tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".applescript", encoding="utf-8")
    tmp_file.write(script)
    tmp_file.flush()
    tmp_file.close()
    return tmp_file.name


class ChannelExecutor:
    """Runs scripts and URL activations against Things3."""

    def __init__(
        self,
        config: Optional[ThingsConfig] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or ThingsConfig()
        self.logger = logger or get_logger(__name__)
        self.sleep = sleep

    def run_script(self, script: str) -> str:
        """Run an AppleScript snippet and return its *stdout* as ``str``."""
        timeout = self.config.script_timeout
        script_path = _write_temp_applescript(script)
        try:
            try:
                process = subprocess.run(
                    ["osascript", script_path],
                    capture_output=True,
                    text=True,
                    check=False,
                    timeout=timeout,
                )
            except subprocess.TimeoutExpired as exc:
                self.logger.error("AppleScript timed out after %ss", timeout)
                raise ChannelTimeoutError(AUTOMATION_CHANNEL, timeout) from exc
            except OSError as exc:
                self.logger.error("Could not start osascript: %s", exc)
                raise ChannelSpawnError(AUTOMATION_CHANNEL, f"could not start osascript: {exc}") from exc

            if process.returncode != 0:
                self.logger.debug("AppleScript failed: %s", process.stderr.strip())
                raise ChannelExitError(AUTOMATION_CHANNEL, process.returncode, process.stderr)

            return process.stdout.strip()
        finally:
            # Ensure the temporary file is always removed.
            try:
                os.remove(script_path)
            except FileNotFoundError:
                pass

    def activate(self, url: str) -> None:
        """Hand ``url`` to the system URL handler, then wait the settle delay.

        Opening the URL may launch or focus Things3. On a cold start the
        settle delay is not guaranteed to cover the launch.
        """
        self.logger.debug("Executing URL scheme: %s...", url[:_URL_LOG_PREFIX])
        try:
            process = subprocess.run(
                ["open", url],
                capture_output=True,
                text=True,
                check=False,
                timeout=self.config.script_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ChannelTimeoutError(ACTIVATION_CHANNEL, self.config.script_timeout) from exc
        except OSError as exc:
            raise ChannelSpawnError(ACTIVATION_CHANNEL, f"could not start open: {exc}") from exc

        if process.returncode != 0:
            self.logger.error("URL scheme execution failed: %s", process.stderr.strip())
            raise ChannelExitError(ACTIVATION_CHANNEL, process.returncode, process.stderr)

        self.sleep(self.config.settle_delay)

    def ensure_running(self) -> None:
        """Launch Things3 if it is not running yet."""
        if not self.config.auto_launch:
            return
        self.run_script(templates.ensure_running())

    def version(self) -> str:
        return self.run_script(templates.get_version())
