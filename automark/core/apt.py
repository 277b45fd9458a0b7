"""Interface to the Debian package tools (dpkg-query, apt-mark, apt-get).

Every command goes through a single runner (subprocess.run by default) so
callers and tests can substitute it.
"""

import logging
import re
import subprocess
from typing import Callable, Iterable, List, Optional, Set

from .config import AutomarkConfig

logger = logging.getLogger(__name__)

# Produces exactly the text understood by core.control
METADATA_FORMAT = (
    "Package: ${Package}\n"
    "Pre-Depends: ${Pre-Depends}\n"
    "Depends: ${Depends}\n"
    "Recommends: ${Recommends}\n"
    "Provides: ${Provides}\n"
    "\n"
)
STATUS_FORMAT = "${Package}\t${db:Status-Abbrev}\n"

# dpkg status abbreviations of packages that are really installed
INSTALLED_STATUSES = ('ii', 'hi')

_REMOVE_LINE = re.compile(r'^Remv\s+(\S+)')


class AptError(Exception):
    """Raised when a package tool fails."""

    def __init__(self, command: List[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"'{' '.join(command)}' failed with exit code {returncode}{detail}")


def _strip_arch(name: str) -> str:
    return name.split(':', 1)[0]


class AptBackend:
    """Query and update the package database through the apt/dpkg CLIs."""

    def __init__(self, config: Optional[AutomarkConfig] = None,
                 runner: Optional[Callable] = None):
        self.config = config or AutomarkConfig()
        self._runner = runner or subprocess.run

    def _run(self, command: List[str], ok_codes: Iterable[int] = (0,)) -> str:
        """Run a command and return its stdout.

        Raises:
            AptError: On an exit code outside ok_codes or a missing program
        """
        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = self._runner(command, capture_output=True, text=True)
        except FileNotFoundError:
            raise AptError(command, 127, f"{command[0]}: command not found")

        if result.returncode not in ok_codes:
            raise AptError(command, result.returncode, result.stderr or "")
        if result.returncode != 0 and result.stderr:
            logger.warning(result.stderr.strip())
        return result.stdout or ""

    @staticmethod
    def _lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    def installed_packages(self) -> Set[str]:
        """Names of all installed packages."""
        output = self._run([self.config.dpkg_query, '-W', '-f', STATUS_FORMAT])
        installed = set()
        for line in output.splitlines():
            parts = line.split('\t')
            if len(parts) != 2:
                continue
            name, status = parts
            if status.strip() in INSTALLED_STATUSES:
                installed.add(_strip_arch(name.strip()))
        return installed

    def manual_packages(self) -> Set[str]:
        """Names of packages marked as manually installed."""
        output = self._run([self.config.apt_mark, 'showmanual'])
        return {_strip_arch(name) for name in self._lines(output)}

    def auto_packages(self, names: Optional[Iterable[str]] = None) -> Set[str]:
        """Names of packages marked as automatically installed.

        Args:
            names: Restrict the answer to these packages (all if None)
        """
        command = [self.config.apt_mark, 'showauto']
        if names is not None:
            names = sorted(names)
            if not names:
                return set()
            command.extend(names)
        output = self._run(command)
        return {_strip_arch(name) for name in self._lines(output)}

    def mark_auto(self, names: Iterable[str]):
        """Mark packages as automatically installed."""
        self._mark('auto', names)

    def mark_manual(self, names: Iterable[str]):
        """Mark packages as manually installed."""
        self._mark('manual', names)

    def _mark(self, flag: str, names: Iterable[str]):
        names = sorted(names)
        if not names:
            return
        logger.info(f"Marking {len(names)} package(s) as {flag}")
        self._run([self.config.apt_mark, flag] + names)

    def simulate_autoremove(self) -> Set[str]:
        """Names apt would remove on 'apt-get autoremove'."""
        output = self._run([self.config.apt_get, '-s', 'autoremove'])
        removed = set()
        for line in output.splitlines():
            match = _REMOVE_LINE.match(line)
            if match:
                removed.add(_strip_arch(match.group(1)))
        return removed

    def query_metadata(self, names: Optional[Iterable[str]] = None) -> str:
        """Control-format metadata of installed packages.

        Args:
            names: Packages to describe (every installed package if None)

        Returns:
            Text for core.control.parse_control()
        """
        command = [self.config.dpkg_query, '-W', '-f', METADATA_FORMAT]
        if names is not None:
            names = sorted(names)
            if not names:
                return ""
            command.extend(names)
        # dpkg-query exits 1 when some of the names are unknown
        return self._run(command, ok_codes=(0, 1))
