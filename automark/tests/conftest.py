"""Shared fixtures: an in-memory apt backend"""

import pytest


# app -> liba -> libc6 (not installed here)
# tool -> data
# x <-> y, and x -> w: nothing outside the cycle holds x, y or w
METADATA = {
    'app': "Package: app\nDepends: liba\n",
    'liba': "Package: liba\nDepends: libc6 (>= 2.34)\n",
    'tool': "Package: tool\nRecommends: data-virtual\n",
    'data': "Package: data\nProvides: data-virtual\n",
    'x': "Package: x\nDepends: y, w\n",
    'y': "Package: y\nDepends: x\n",
    'w': "Package: w\nPre-Depends: dpkg\n",
}


class FakeBackend:
    """In-memory stand-in for AptBackend.

    Each simulate_autoremove() call pops the next entry of
    autoremove_results; an exception instance is raised instead of returned.
    """

    def __init__(self, manual=None, autoremove_results=()):
        self.installed = set(METADATA)
        self.manual = set(METADATA if manual is None else manual)
        self.auto = self.installed - self.manual
        self.autoremove_results = list(autoremove_results)
        self.calls = []

    def installed_packages(self):
        return set(self.installed)

    def manual_packages(self):
        return set(self.manual)

    def auto_packages(self, names=None):
        if names is None:
            return set(self.auto)
        return self.auto & set(names)

    def mark_auto(self, names):
        names = set(names)
        self.calls.append(('auto', names))
        self.auto |= names
        self.manual -= names

    def mark_manual(self, names):
        names = set(names)
        self.calls.append(('manual', names))
        self.manual |= names
        self.auto -= names

    def simulate_autoremove(self):
        self.calls.append(('simulate',))
        outcome = self.autoremove_results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return set(outcome)

    def query_metadata(self, names=None):
        selected = sorted(METADATA) if names is None else sorted(names)
        return "\n".join(METADATA[name] for name in selected if name in METADATA)


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend
