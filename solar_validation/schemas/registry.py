"""
Schema registry.

Maps schema names to Pydantic model classes describing the structural,
type and range contract of a record. Registries are plain instances so
each orchestrator (and each test) can hold its own.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel

from solar_validation.config import get_logger
from solar_validation.exceptions import SchemaNotFoundError


logger = get_logger(__name__)


def _category_value(category: object) -> str | None:
    """Normalise an enum or string category to its string value."""
    if category is None:
        return None
    return str(getattr(category, "value", category))


@dataclass(frozen=True, slots=True)
class SchemaDefinition:
    """
    A named schema.

    Attributes:
        name: Schema identifier used in rule sets.
        model: Pydantic model enforcing the contract.
        category: Record category the schema belongs to.
        description: Human-readable description.
        version: Schema version.
    """

    name: str
    model: type[BaseModel]
    category: str | None = None
    description: str = ""
    version: str = "1.0.0"

    def field_count(self) -> int:
        """Number of top-level fields in the schema."""
        return len(self.model.model_fields)


class SchemaRegistry:
    """
    Registry of named schemas.

    Example:
        registry = SchemaRegistry.with_builtin_schemas()
        registry.register("my_schema", MyModel)
        definition = registry.get("my_schema")
    """

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaDefinition] = {}

    @classmethod
    def with_builtin_schemas(cls) -> SchemaRegistry:
        """Create a registry preloaded with the built-in solar schemas."""
        from solar_validation.schemas.solar import BUILTIN_SCHEMAS

        registry = cls()
        for definition in BUILTIN_SCHEMAS:
            registry.add(definition)
        return registry

    def register(
        self,
        name: str,
        model: type[BaseModel],
        category: object = None,
        description: str = "",
        version: str = "1.0.0",
    ) -> SchemaDefinition:
        """
        Register a model under a schema name, replacing any previous entry.

        Args:
            name: Schema identifier.
            model: Pydantic model class.
            category: Optional record category.
            description: Optional description.
            version: Schema version.

        Returns:
            The stored SchemaDefinition.
        """
        definition = SchemaDefinition(
            name=name,
            model=model,
            category=_category_value(category),
            description=description or (model.__doc__ or "").strip().split("\n")[0],
            version=version,
        )
        return self.add(definition)

    def add(self, definition: SchemaDefinition) -> SchemaDefinition:
        """Store a prepared SchemaDefinition."""
        if not (isinstance(definition.model, type) and issubclass(definition.model, BaseModel)):
            raise TypeError(f"Schema '{definition.name}' must be a pydantic model")
        if definition.name in self._schemas:
            logger.info("schema_replaced", schema_name=definition.name)
        self._schemas[definition.name] = definition
        return definition

    def get(self, name: str) -> SchemaDefinition | None:
        """Get a schema definition by name."""
        return self._schemas.get(name)

    def require(self, name: str) -> SchemaDefinition:
        """
        Get a schema definition or raise.

        Raises:
            SchemaNotFoundError: If no schema is registered under the name.
        """
        definition = self._schemas.get(name)
        if definition is None:
            raise SchemaNotFoundError(name)
        return definition

    def names(self) -> list[str]:
        """Get registered schema names."""
        return list(self._schemas)

    def by_category(self, category: object) -> list[SchemaDefinition]:
        """Get schemas belonging to a record category."""
        wanted = _category_value(category)
        return [s for s in self._schemas.values() if s.category == wanted]

    def has(self, name: str) -> bool:
        """Check if a schema is registered."""
        return name in self._schemas

    def unregister(self, name: str) -> bool:
        """Remove a schema. Returns True if it existed."""
        return self._schemas.pop(name, None) is not None

    def clear(self) -> None:
        """Remove every schema (for testing)."""
        self._schemas.clear()

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas
