"""Enumeration cache configuration entity."""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from enumcache.core.entities.query import OrderTerm, parse_order
from enumcache.core.exceptions import ConfigurationError

PRIMARY_KEY = "id"

# Naming source for constants: an attribute name, a function of the
# entity, or None when constants are disabled.
Constantize = str | Callable[[Any], Any] | None


@dataclass(frozen=True)
class EnumerationConfig:
    """Configuration of the cache for one enumeration table.

    Fixed at setup time. ``id`` is always part of ``hashed`` even when
    the caller leaves it out.

    Attributes:
        order: Attribute (or ``"attr desc, other"`` list) defining the
            snapshot order.
        hashed: Attributes that get an equality index.
        constantize: Attribute or naming function used to derive constant
            names, or None to disable constants.
    """

    order: str = PRIMARY_KEY
    hashed: tuple[str, ...] = (PRIMARY_KEY, "name")
    constantize: Constantize = "name"
    order_terms: tuple[OrderTerm, ...] = field(init=False, repr=False, compare=False)

    OPTIONS = ("order", "hashed", "constantize")

    def __post_init__(self) -> None:
        """Validate options and normalize ``hashed``."""
        if not isinstance(self.order, str) or not self.order.strip():
            raise ConfigurationError(
                f"order must be a non-empty attribute name, got {self.order!r}"
            )
        try:
            terms = parse_order(self.order)
        except ValueError as e:
            raise ConfigurationError(f"invalid order {self.order!r}: {e}") from e

        hashed = _normalize_hashed(self.hashed)

        if self.constantize is not None and not (
            isinstance(self.constantize, str) or callable(self.constantize)
        ):
            raise ConfigurationError(
                "constantize must be an attribute name, a naming function "
                f"or None, got {self.constantize!r}"
            )
        if isinstance(self.constantize, str) and not self.constantize.strip():
            raise ConfigurationError("constantize attribute name must not be empty")

        object.__setattr__(self, "hashed", hashed)
        object.__setattr__(self, "order_terms", terms)

    @property
    def constants_enabled(self) -> bool:
        """Check whether constants are generated for this enumeration."""
        return self.constantize is not None

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> "EnumerationConfig":
        """Create a configuration from caller options.

        Only ``order``, ``hashed`` and ``constantize`` are understood;
        anything else is rejected. ``constantize=False`` disables constants.

        Args:
            options: Mapping of option names to values.
            **kwargs: Options given as keyword arguments.

        Returns:
            A validated EnumerationConfig.

        Raises:
            ConfigurationError: If an option is unknown or invalid.
        """
        merged = dict(options or {})
        merged.update(kwargs)

        unknown = sorted(set(merged) - set(cls.OPTIONS))
        if unknown:
            raise ConfigurationError(
                f"unexpected parameters {unknown}, "
                f"only {list(cls.OPTIONS)} are understood"
            )

        if merged.get("constantize", "name") is False:
            merged["constantize"] = None

        return cls(**merged)


def _normalize_hashed(hashed: Iterable[str]) -> tuple[str, ...]:
    if isinstance(hashed, (str, bytes)) or not isinstance(hashed, Iterable):
        raise ConfigurationError(
            f"hashed must be a collection of attribute names, got {hashed!r}"
        )

    attributes: list[str] = []
    for attribute in hashed:
        if not isinstance(attribute, str) or not attribute:
            raise ConfigurationError(
                f"hashed attribute names must be non-empty strings, got {attribute!r}"
            )
        if attribute not in attributes:
            attributes.append(attribute)

    if PRIMARY_KEY not in attributes:
        attributes.append(PRIMARY_KEY)
    return tuple(attributes)
