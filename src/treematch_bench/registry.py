"""Algorithm registry and configuration resolution.

Algorithms are registered under a tag with a zero-argument factory. A
configuration pairs a unique name with a tag's factory and a set of tuning
options; ``resolve`` turns CLI identifiers (``tag`` or
``tag:key=value,...``) into configurations, or returns the default suite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from treematch_bench.errors import ConfigurationError
from treematch_bench.treediff.matchers import (
    ClassicMatcher,
    HybridMatcher,
    LcsMatcher,
    SimpleMatcher,
    TopDownMatcher,
)


class Registry:
    """Simple name-based registry for pluggable components."""

    def __init__(self) -> None:
        self._stores: dict[str, dict[str, Any]] = {}

    def register(self, kind: str, name: str, obj: Any) -> None:
        """Register an object under kind/name."""
        if kind not in self._stores:
            self._stores[kind] = {}
        self._stores[kind][name] = obj

    def get(self, kind: str, name: str) -> Any:
        """Look up a registered object. Raises KeyError if not found."""
        try:
            return self._stores[kind][name]
        except KeyError:
            available = list(self._stores.get(kind, {}).keys())
            raise KeyError(
                f"No {kind} registered with name {name!r}. "
                f"Available: {available}"
            )

    def list(self, kind: str) -> list[str]:
        """List registered names for a kind."""
        return list(self._stores.get(kind, {}).keys())


# Global singleton
registry = Registry()


def register_matcher(tag: str, factory: Callable[[], Any]) -> None:
    """Convenience: register a matcher factory under a tag."""
    registry.register("matcher", tag, factory)


register_matcher("topdown", TopDownMatcher)
register_matcher("simple", SimpleMatcher)
register_matcher("classic", ClassicMatcher)
register_matcher("hybrid", HybridMatcher)
register_matcher("lcs", LcsMatcher)


@dataclass(frozen=True)
class MatcherConfiguration:
    """A named algorithm variant: factory plus tuning options."""

    name: str
    factory: Callable[[], Any]
    options: Mapping[str, Any] = field(default_factory=dict)

    def instantiate(self) -> Any:
        """Create a fresh, configured matcher instance."""
        matcher = self.factory()
        if self.options:
            matcher.configure(**self.options)
        return matcher


# name -> (tag, options)
DEFAULT_SUITE: dict[str, tuple[str, dict[str, Any]]] = {
    "simple": ("simple", {}),
    "hybrid-20": ("hybrid", {"bu_minsize": 20}),
    "opt-20": ("classic", {"bu_minsize": 20}),
    "opt-200": ("classic", {"bu_minsize": 200}),
}


def parse_identifier(identifier: str) -> tuple[str, dict[str, str]]:
    """Split ``tag:key=value,key=value`` into the tag and raw option strings."""
    tag, _, option_text = identifier.partition(":")
    options: dict[str, str] = {}
    if option_text:
        for item in option_text.split(","):
            key, sep, value = item.partition("=")
            if not sep or not key.strip():
                raise ConfigurationError(
                    f"Malformed option {item!r} in {identifier!r}. Expected key=value."
                )
            options[key.strip()] = value.strip()
    return tag.strip(), options


def _check(config: MatcherConfiguration) -> MatcherConfiguration:
    """Instantiate once so bad factories and options fail before the run."""
    try:
        matcher = config.instantiate()
    except (TypeError, KeyError, ValueError) as exc:
        raise ConfigurationError(f"Cannot configure {config.name!r}: {exc}") from exc
    if not callable(getattr(matcher, "match", None)):
        raise ConfigurationError(f"{config.name!r} does not produce a matcher")
    if config.options and isinstance(getattr(matcher, "options", None), dict):
        # normalize option values to the types the matcher converted them to
        normalized = {k: matcher.options[k] for k in config.options}
        return MatcherConfiguration(config.name, config.factory, normalized)
    return config


def configuration(name: str, tag: str, options: Mapping[str, Any] | None = None) -> MatcherConfiguration:
    """Build and check one configuration for a registered tag."""
    try:
        factory = registry.get("matcher", tag)
    except KeyError:
        raise ConfigurationError(
            f"Unknown algorithm {tag!r}. Available: {', '.join(registry.list('matcher'))}"
        )
    return _check(MatcherConfiguration(name, factory, dict(options or {})))


def default_suite() -> list[MatcherConfiguration]:
    return [configuration(name, tag, options) for name, (tag, options) in DEFAULT_SUITE.items()]


def resolve(identifiers: list[str] | None = None) -> list[MatcherConfiguration]:
    """Resolve algorithm identifiers into configurations, in the given order.

    Falls back to the default suite when no identifiers are given. Raises
    ConfigurationError for unknown tags, bad options or duplicate names.
    """
    if not identifiers:
        return default_suite()

    configurations: list[MatcherConfiguration] = []
    seen: set[str] = set()
    for identifier in identifiers:
        if identifier in seen:
            raise ConfigurationError(f"Duplicate algorithm configuration {identifier!r}")
        seen.add(identifier)
        tag, options = parse_identifier(identifier)
        configurations.append(configuration(identifier, tag, options))
    return configurations
