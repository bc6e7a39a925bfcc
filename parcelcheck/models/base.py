"""Shared pydantic base for domain entities."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Immutable model serialised with camelCase keys (``ruleType``, ``appliesTo``)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self) -> str:
        """Serialise with aliases, omitting nothing, in field order."""
        return self.model_dump_json(by_alias=True)
