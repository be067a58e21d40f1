"""
Wire models for the tuple store protocol.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TupleKey(BaseModel):
    """A single (user, relation, object) authorization fact."""
    model_config = ConfigDict(frozen=True)

    user: str = Field(..., description="Subject: user:<email>, <type>:<id> or <object>#<relation>")
    relation: str = Field(..., description="Relation name")
    object: str = Field(..., description="Object: <type>:<id>")

    @classmethod
    def of(cls, user: str, relation: str, object: str) -> "TupleKey":
        return cls(user=user, relation=relation, object=object)


class TupleKeyFilter(BaseModel):
    """Equality filter for reads; unset fields match anything."""
    user: Optional[str] = None
    relation: Optional[str] = None
    object: Optional[str] = None

    def matches(self, key: TupleKey) -> bool:
        return (
            (self.user is None or key.user == self.user)
            and (self.relation is None or key.relation == self.relation)
            and (self.object is None or key.object == self.object)
        )


class Tuple(BaseModel):
    """Stored tuple as returned by a read."""
    key: TupleKey
    timestamp: Optional[str] = None


class Store(BaseModel):
    """Tuple store descriptor."""
    id: str
    name: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class StoreState(BaseModel):
    """Identifiers resolved by bootstrap."""
    model_config = ConfigDict(frozen=True)

    store_id: str
    model_id: Optional[str] = None
    is_new_store: bool = False


class TupleKeys(BaseModel):
    tuple_keys: List[TupleKey] = Field(default_factory=list)
