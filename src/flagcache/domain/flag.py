"""Flag model and evaluation preparation.

A `Flag` is the record the evaluation cache indexes. It carries nested
segments (each with constraints and a variant distribution), variants and
tags. The cache never evaluates flags itself; it only asks every flag to
*prepare* for evaluation before a snapshot is installed, so that malformed
rules are rejected at refresh time rather than at request time.

Wire format
-----------
Flags travel inside the JSON envelope using the capitalized field names of the
original flag service (``ID``, ``Key``, ``Segments``...). `Flag.from_wire` and
`Flag.to_wire` convert between that shape and the dataclasses below. JSON
``null`` is accepted wherever a list is expected and read as an empty list.

Preparation
-----------
`Flag.prepare_evaluation()`:
  - orders segments by ``(rank, id)``,
  - compiles each constraint (operator + parsed JSON literal value),
  - orders distributions by variant ID and precomputes accumulated percents
    over a 1000-bucket space,
  - indexes variants by ID.

Derived state lives in ``evaluation`` attributes that are excluded from
equality and repr, so a prepared flag compares equal to its unprepared copy.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flagcache.domain.errors import (
    InvalidConstraintError,
    InvalidDistributionError,
    InvalidSegmentError,
)

TOTAL_BUCKET_NUM = 1000
PERCENT_MULTIPLIER = TOTAL_BUCKET_NUM // 100
MAX_PERCENT = 100

# pylint: disable=too-many-instance-attributes


class Operator(str, Enum):
    """Constraint operators understood by the evaluation engine."""

    EQ = "EQ"
    NEQ = "NEQ"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"
    EREG = "EREG"
    NEREG = "NEREG"
    IN = "IN"
    NOTIN = "NOTIN"
    CONTAINS = "CONTAINS"
    NOTCONTAINS = "NOTCONTAINS"


NUMERIC_OPERATORS = frozenset({Operator.LT, Operator.LTE, Operator.GT, Operator.GTE})
REGEX_OPERATORS = frozenset({Operator.EREG, Operator.NEREG})
LIST_OPERATORS = frozenset({Operator.IN, Operator.NOTIN})


# ============================================================================
#                           Wire helpers
# ============================================================================


def _get(data: Mapping[str, Any], name: str, kind: type, default: Any) -> Any:
    """Read `name` from a wire mapping, checking its JSON type.

    Raises:
        TypeError: If the value is present but of the wrong type.
    """
    value = data.get(name, default)
    if value is None:
        return default
    # bool is a subclass of int; JSON true/false must not pass as an ID
    if isinstance(value, bool) and kind is not bool:
        raise TypeError(f"{name!r} must be {kind.__name__}, got bool")
    if not isinstance(value, kind):
        raise TypeError(f"{name!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _get_objects(data: Mapping[str, Any], name: str) -> list[Mapping[str, Any]]:
    items = _get(data, name, list, [])
    for item in items:
        if not isinstance(item, Mapping):
            raise TypeError(f"{name!r} entries must be objects, got {type(item).__name__}")
    return items


# ============================================================================
#                           Derived evaluation state
# ============================================================================


@dataclass(frozen=True)
class CompiledConstraint:
    """A constraint whose value has been parsed and checked against its operator."""

    property: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class DistributionArray:
    """Variant IDs with their accumulated bucket boundaries (0..1000)."""

    variant_ids: tuple[int, ...]
    percents_accumulated: tuple[int, ...]


@dataclass(frozen=True)
class SegmentEvaluation:
    """Precomputed state for a prepared segment."""

    conditions: tuple[CompiledConstraint, ...]
    distribution_array: DistributionArray


@dataclass(frozen=True)
class FlagEvaluation:
    """Precomputed state for a prepared flag."""

    variants_by_id: dict[int, Variant]


# ============================================================================
#                           Records
# ============================================================================


@dataclass
class Constraint:
    """A single ``property OPERATOR value`` rule of a segment."""

    id: int = 0
    segment_id: int = 0
    property: str = ""
    operator: str = ""
    value: str = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Constraint:
        """Build a constraint from its wire mapping."""
        return cls(
            id=_get(data, "ID", int, 0),
            segment_id=_get(data, "SegmentID", int, 0),
            property=_get(data, "Property", str, ""),
            operator=_get(data, "Operator", str, ""),
            value=_get(data, "Value", str, ""),
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this constraint."""
        return {
            "ID": self.id,
            "SegmentID": self.segment_id,
            "Property": self.property,
            "Operator": self.operator,
            "Value": self.value,
        }

    def compile(self, flag_id: int) -> CompiledConstraint:
        """Validate the operator and parse the value into a `CompiledConstraint`.

        Args:
            flag_id: ID of the owning flag, used for error reporting.

        Returns:
            CompiledConstraint: The parsed, operator-checked constraint.

        Raises:
            InvalidConstraintError: If the property is empty, the operator is
                unknown, or the value is not a literal the operator accepts.
        """
        if not self.property:
            raise InvalidConstraintError(
                flag_id, f"constraint {self.id} has an empty property"
            )
        try:
            operator = Operator(self.operator)
        except ValueError as e:
            raise InvalidConstraintError(
                flag_id, f"constraint {self.id} has unknown operator {self.operator!r}"
            ) from e
        try:
            literal = json.loads(self.value)
        except json.JSONDecodeError as e:
            raise InvalidConstraintError(
                flag_id, f"constraint {self.id} value {self.value!r} is not a literal"
            ) from e

        return CompiledConstraint(
            property=self.property,
            operator=operator,
            value=self._check_literal(flag_id, operator, literal),
        )

    def _check_literal(self, flag_id: int, operator: Operator, literal: Any) -> Any:
        if operator in NUMERIC_OPERATORS:
            if isinstance(literal, bool) or not isinstance(literal, (int, float)):
                raise InvalidConstraintError(
                    flag_id, f"constraint {self.id} {operator.value} needs a number"
                )
            return literal
        if operator in REGEX_OPERATORS:
            if not isinstance(literal, str):
                raise InvalidConstraintError(
                    flag_id, f"constraint {self.id} {operator.value} needs a string"
                )
            try:
                return re.compile(literal)
            except re.error as e:
                raise InvalidConstraintError(
                    flag_id, f"constraint {self.id} has invalid regex {literal!r}"
                ) from e
        if operator in LIST_OPERATORS:
            if not isinstance(literal, list):
                raise InvalidConstraintError(
                    flag_id, f"constraint {self.id} {operator.value} needs an array"
                )
            return tuple(literal)
        if isinstance(literal, (list, dict)):
            raise InvalidConstraintError(
                flag_id, f"constraint {self.id} {operator.value} needs a scalar"
            )
        return literal


@dataclass
class Distribution:
    """Share of a segment's traffic assigned to one variant."""

    id: int = 0
    segment_id: int = 0
    variant_id: int = 0
    variant_key: str = ""
    percent: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Distribution:
        """Build a distribution from its wire mapping."""
        return cls(
            id=_get(data, "ID", int, 0),
            segment_id=_get(data, "SegmentID", int, 0),
            variant_id=_get(data, "VariantID", int, 0),
            variant_key=_get(data, "VariantKey", str, ""),
            percent=_get(data, "Percent", int, 0),
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this distribution."""
        return {
            "ID": self.id,
            "SegmentID": self.segment_id,
            "VariantID": self.variant_id,
            "VariantKey": self.variant_key,
            "Percent": self.percent,
        }


@dataclass
class Segment:
    """An audience slice: constraints to match plus a variant distribution."""

    id: int = 0
    flag_id: int = 0
    description: str = ""
    rank: int = 0
    rollout_percent: int = 0
    constraints: list[Constraint] = field(default_factory=list)
    distributions: list[Distribution] = field(default_factory=list)
    evaluation: SegmentEvaluation | None = field(
        default=None, compare=False, repr=False
    )

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Segment:
        """Build a segment (and its children) from its wire mapping."""
        return cls(
            id=_get(data, "ID", int, 0),
            flag_id=_get(data, "FlagID", int, 0),
            description=_get(data, "Description", str, ""),
            rank=_get(data, "Rank", int, 0),
            rollout_percent=_get(data, "RolloutPercent", int, 0),
            constraints=[
                Constraint.from_wire(c) for c in _get_objects(data, "Constraints")
            ],
            distributions=[
                Distribution.from_wire(d) for d in _get_objects(data, "Distributions")
            ],
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this segment."""
        return {
            "ID": self.id,
            "FlagID": self.flag_id,
            "Description": self.description,
            "Rank": self.rank,
            "RolloutPercent": self.rollout_percent,
            "Constraints": [c.to_wire() for c in self.constraints],
            "Distributions": [d.to_wire() for d in self.distributions],
        }

    def prepare_evaluation(self, flag_id: int) -> None:
        """Compile constraints and build the distribution array.

        Args:
            flag_id: ID of the owning flag, used for error reporting.

        Raises:
            InvalidSegmentError: If the rollout percent is outside 0..100.
            InvalidConstraintError: If any constraint fails to compile.
            InvalidDistributionError: If distributions do not add up to 100.
        """
        if not 0 <= self.rollout_percent <= MAX_PERCENT:
            raise InvalidSegmentError(
                flag_id,
                f"segment {self.id} rollout percent {self.rollout_percent} "
                "is outside 0..100",
            )

        conditions = tuple(c.compile(flag_id) for c in self.constraints)

        self.distributions.sort(key=lambda d: d.variant_id)
        accumulated: list[int] = []
        total = 0
        for distribution in self.distributions:
            if not 0 <= distribution.percent <= MAX_PERCENT:
                raise InvalidDistributionError(
                    flag_id,
                    f"segment {self.id} distribution {distribution.id} percent "
                    f"{distribution.percent} is outside 0..100",
                )
            total += distribution.percent
            accumulated.append(total * PERCENT_MULTIPLIER)
        if self.distributions and total != MAX_PERCENT:
            raise InvalidDistributionError(
                flag_id, f"segment {self.id} distributions add up to {total}, not 100"
            )

        self.evaluation = SegmentEvaluation(
            conditions=conditions,
            distribution_array=DistributionArray(
                variant_ids=tuple(d.variant_id for d in self.distributions),
                percents_accumulated=tuple(accumulated),
            ),
        )


@dataclass
class Variant:
    """A possible evaluation result, optionally carrying a JSON attachment."""

    id: int = 0
    flag_id: int = 0
    key: str = ""
    attachment: dict[str, Any] | None = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Variant:
        """Build a variant from its wire mapping."""
        return cls(
            id=_get(data, "ID", int, 0),
            flag_id=_get(data, "FlagID", int, 0),
            key=_get(data, "Key", str, ""),
            attachment=_get(data, "Attachment", dict, None),
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this variant."""
        return {
            "ID": self.id,
            "FlagID": self.flag_id,
            "Key": self.key,
            "Attachment": self.attachment,
        }


@dataclass
class Tag:
    """A free-form label attached to flags."""

    id: int = 0
    value: str = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Tag:
        """Build a tag from its wire mapping."""
        return cls(id=_get(data, "ID", int, 0), value=_get(data, "Value", str, ""))

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this tag."""
        return {"ID": self.id, "Value": self.value}


@dataclass
class Flag:
    """A feature flag with its nested rules.

    The evaluation cache indexes flags by ``id`` (when non-zero) and by
    ``key`` (when non-empty). A flag with neither is fetched but unreachable.
    """

    id: int = 0
    key: str = ""
    description: str = ""
    enabled: bool = False
    segments: list[Segment] = field(default_factory=list)
    variants: list[Variant] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    notes: str = ""
    data_records_enabled: bool = False
    entity_type: str = ""
    evaluation: FlagEvaluation | None = field(default=None, compare=False, repr=False)

    @property
    def prepared(self) -> bool:
        """True once `prepare_evaluation()` has succeeded."""
        return self.evaluation is not None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Flag:
        """Build a flag from its wire mapping.

        Args:
            data: A decoded JSON object using the capitalized wire keys.

        Returns:
            Flag: The unprepared flag.

        Raises:
            TypeError: If a field has the wrong JSON type.
        """
        return cls(
            id=_get(data, "ID", int, 0),
            key=_get(data, "Key", str, ""),
            description=_get(data, "Description", str, ""),
            enabled=_get(data, "Enabled", bool, False),
            segments=[Segment.from_wire(s) for s in _get_objects(data, "Segments")],
            variants=[Variant.from_wire(v) for v in _get_objects(data, "Variants")],
            tags=[Tag.from_wire(t) for t in _get_objects(data, "Tags")],
            notes=_get(data, "Notes", str, ""),
            data_records_enabled=_get(data, "DataRecordsEnabled", bool, False),
            entity_type=_get(data, "EntityType", str, ""),
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the wire mapping for this flag."""
        return {
            "ID": self.id,
            "Key": self.key,
            "Description": self.description,
            "Enabled": self.enabled,
            "Segments": [s.to_wire() for s in self.segments],
            "Variants": [v.to_wire() for v in self.variants],
            "Tags": [t.to_wire() for t in self.tags],
            "Notes": self.notes,
            "DataRecordsEnabled": self.data_records_enabled,
            "EntityType": self.entity_type,
        }

    def prepare_evaluation(self) -> None:
        """Validate nested rules and precompute evaluation state.

        Raises:
            PreparationError: If any segment, constraint or distribution is
                invalid. The flag is left unprepared in that case.
        """
        self.segments.sort(key=lambda s: (s.rank, s.id))
        for segment in self.segments:
            segment.prepare_evaluation(self.id)
        self.evaluation = FlagEvaluation(
            variants_by_id={variant.id: variant for variant in self.variants}
        )
