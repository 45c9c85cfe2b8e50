"""
Schema and Query Models

Table (DocType) field definitions as discovered from the ERP, and the
structured query descriptor the synthesizer produces for one turn.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FieldDescriptor(BaseModel):
    """One field of a DocType."""

    fieldname: str = Field(..., min_length=1, description="Field identifier")
    label: str = Field(..., description="Human-readable label")
    fieldtype: str = Field(..., description="Frappe field type (Data, Currency, Link, ...)")
    options: str | None = Field(
        None, description="Link target or select options, when the field type uses them"
    )

    model_config = ConfigDict(frozen=True)


class SchemaEntry(BaseModel):
    """
    A DocType and its fields.

    Entries created by table discovery carry only a name; an entry with
    fields comes from a schema fetch.
    """

    name: str = Field(..., min_length=1, description="DocType name")
    fields: tuple[FieldDescriptor, ...] = Field(
        default_factory=tuple, description="Field definitions (empty = name only)"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_loaded(self) -> bool:
        return bool(self.fields)

    @property
    def field_names(self) -> list[str]:
        return [field.fieldname for field in self.fields]

    def describe(self) -> str:
        """Render the entry for prompts: ``DocType: X`` then ``Fields: a (Data), ...``."""
        fields = ", ".join(f"{field.fieldname} ({field.fieldtype})" for field in self.fields)
        return f"DocType: {self.name}\nFields: {fields}"


class QueryDescriptor(BaseModel):
    """
    Structured list query against one DocType.

    ``filters`` is always a concrete mapping. Frappe list-style filters
    (``[[field, op, value], ...]``) and condition objects
    (``[{"fieldname", "operator", "value" | "values"}, ...]``) are normalized
    to ``{field: [op, value]}``. A ``>=``/``<=`` pair on one field becomes
    ``[between, [lo, hi]]``; any other second condition on a field is rejected.
    """

    doctype: str = Field(..., min_length=1, description="Target DocType")
    fields: list[str] = Field(..., min_length=1, description="Fields to select")
    filters: dict[str, Any] = Field(default_factory=dict, description="Filter mapping")
    limit: int | None = Field(None, description="Maximum rows to return")
    order_by: str | None = Field(None, description="Ordering clause, e.g. 'posting_date desc'")

    @field_validator("fields", mode="before")
    @classmethod
    def clean_fields(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [f.strip() for f in v if isinstance(f, str) and f.strip()]
        return v

    @field_validator("filters", mode="before")
    @classmethod
    def normalize_filters(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, list):
            normalized: dict[str, Any] = {}
            for item in v:
                if isinstance(item, dict):
                    fieldname = item.get("fieldname") or item.get("field")
                    if not fieldname:
                        raise ValueError(f"Unsupported filter entry: {item!r}")
                    _add_condition(normalized, str(fieldname), _condition_from_object(item))
                    continue
                if not isinstance(item, (list, tuple)):
                    raise ValueError(f"Unsupported filter entry: {item!r}")
                if len(item) == 2:
                    _add_condition(normalized, str(item[0]), item[1])
                elif len(item) == 3:
                    _add_condition(normalized, str(item[0]), _condition(item[1], item[2]))
                elif len(item) == 4:
                    # [doctype, field, op, value]
                    _add_condition(normalized, str(item[1]), _condition(item[2], item[3]))
                else:
                    raise ValueError(f"Unsupported filter entry: {item!r}")
            return normalized
        return v

    @field_validator("order_by", mode="before")
    @classmethod
    def blank_order_by(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


LIST_OPERATORS = frozenset({"in", "not in", "between"})


def _condition_from_object(item: dict[str, Any]) -> list[Any]:
    values = item.get("values")
    value = values if isinstance(values, list) and values else item.get("value")
    return _condition(item.get("operator"), value)


def _condition(operator: Any, value: Any) -> list[Any]:
    op = str(operator or "=").strip().lower()
    if op in LIST_OPERATORS:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        elif isinstance(value, tuple):
            value = list(value)
        if not isinstance(value, list) or not value:
            raise ValueError(f"Operator '{op}' needs a list of values")
        if op == "between" and len(value) != 2:
            raise ValueError("Operator 'between' needs exactly two values")
    return [op, value]


def _add_condition(filters: dict[str, Any], fieldname: str, condition: Any) -> None:
    """Add one condition, merging a lower and upper bound on the same field."""
    existing = filters.get(fieldname)
    if fieldname not in filters or existing == condition:
        filters[fieldname] = condition
        return
    bounds = {}
    for cond in (existing, condition):
        if isinstance(cond, list) and len(cond) == 2 and cond[0] in (">=", "<="):
            bounds[cond[0]] = cond[1]
    if len(bounds) == 2:
        filters[fieldname] = ["between", [bounds[">="], bounds["<="]]]
        return
    raise ValueError(f"Conflicting filters on '{fieldname}': {existing!r} and {condition!r}")
