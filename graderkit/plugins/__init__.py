"""Ready-to-run plugins, keyed by the name used on the command line."""

from __future__ import annotations

from typing import Dict, Type

from graderkit.runtime.plugin import Plugin

from .listing import ListingPlugin
from .regex import RegexPlugin
from .source_run import SourceRunPlugin

BUILTIN_PLUGINS: Dict[str, Type[Plugin]] = {
    ListingPlugin.name: ListingPlugin,
    RegexPlugin.name: RegexPlugin,
    SourceRunPlugin.name: SourceRunPlugin,
}


def get_plugin(name: str) -> Type[Plugin]:
    try:
        return BUILTIN_PLUGINS[name]
    except KeyError:
        known = ", ".join(sorted(BUILTIN_PLUGINS))
        raise KeyError(f"Unknown plugin {name!r}; choose one of: {known}") from None


__all__ = ["BUILTIN_PLUGINS", "ListingPlugin", "RegexPlugin", "SourceRunPlugin", "get_plugin"]
