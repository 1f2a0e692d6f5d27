"""Registry engine: the rules every configuration kind shares.

One ``RegistryEngine`` serves one ``ConfigurationKind`` over an injected
``ConfigurationStore``. It validates and coerces payloads, derives status
from dates, and asks the store to guard writes of strict-overlap kinds so
no two versions of a natural key ever cover the same day. Non-strict kinds
accept overlapping versions and only report them in the log.

Multi-field updates are computed completely before the single store write,
so a failed operation never leaves a record half-changed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Final
from zoneinfo import ZoneInfo

from loguru import logger

from revenue.core.exceptions import NotFoundError, ValidationError
from revenue.core.observability import trace_operation
from revenue.domain.registry.intervals import Interval, find_overlaps
from revenue.domain.registry.kinds import (
    ConfigurationKind,
    NumericSpec,
    RecordStatus,
)
from revenue.domain.registry.records import ConfigurationRecord, derive_status
from revenue.domain.registry.store import RecordFilter, WriteGuard

if TYPE_CHECKING:
    from revenue.core.types import Payload, RecordValues
    from revenue.domain.registry.store import ConfigurationStore

type Clock = Callable[[], date]


def zoned_clock(timezone: str) -> Clock:
    """Clock returning the current date in an IANA timezone."""
    zone = ZoneInfo(timezone)
    return lambda: datetime.now(zone).date()


_EFFECTIVE: Final[str] = "effective_date"
_EXPIRATION: Final[str] = "expiration_date"
_STATUS: Final[str] = "status"


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_date(value: object, field: str) -> date | None:
    """Coerce a date, datetime or ISO ``YYYY-MM-DD`` string.

    Blank values (None or an empty string) mean "no date".

    Raises:
        ValidationError: If the value is not a calendar date.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            msg = f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}"
            raise ValidationError(msg, field=field, cause=e) from e
    msg = f"{field} must be a date, got {type(value).__name__}"
    raise ValidationError(msg, field=field)


def _parse_status(value: object) -> RecordStatus | None:
    if value is None:
        return None
    try:
        return RecordStatus(str(value).strip().lower())
    except ValueError as e:
        msg = f"status must be one of {', '.join(RecordStatus)}"
        raise ValidationError(msg, field=_STATUS, cause=e) from e


def _parse_decimal(value: object, field: str, spec: NumericSpec) -> Decimal:
    """Coerce a non-negative number that fits its column without rounding.

    Raises:
        ValidationError: If the value is not a finite number, is negative,
            or has more digits than the column holds.
    """
    if isinstance(value, bool):
        msg = f"{field} must be a number"
        raise ValidationError(msg, field=field)
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        msg = f"{field} must be a number, got {value!r}"
        raise ValidationError(msg, field=field, cause=e) from e
    if not number.is_finite():
        msg = f"{field} must be a finite number"
        raise ValidationError(msg, field=field)
    if number < 0:
        msg = f"{field} must not be negative"
        raise ValidationError(msg, field=field)

    # Trailing zeros after the point never need storing
    exponent = number.normalize().as_tuple().exponent
    places = -exponent if isinstance(exponent, int) and exponent < 0 else 0
    if places > spec.scale:
        msg = f"{field} allows at most {spec.scale} decimal places"
        raise ValidationError(msg, field=field)
    if number.adjusted() >= spec.whole_digits:
        msg = f"{field} allows at most {spec.whole_digits} digits before the point"
        raise ValidationError(msg, field=field)
    return number


class RegistryEngine:
    """Temporal registry operations for one configuration kind.

    Args:
        kind: Descriptor of the configuration table.
        store: Storage the engine reads and writes through.
        clock: Returns "today"; status and expiry are computed against it.
    """

    def __init__(
        self,
        kind: ConfigurationKind,
        store: ConfigurationStore,
        *,
        clock: Clock = date.today,
    ) -> None:
        self.kind = kind
        self.store = store
        self.clock = clock

    # Reads

    async def list_effective(
        self, as_of: date | str | None = None
    ) -> list[ConfigurationRecord]:
        """Return the versions in force on ``as_of`` (default today).

        Status is still derived against today, not against ``as_of``.
        """
        today = self.clock()
        day = parse_date(as_of, "as_of") or today
        with trace_operation("registry.list", kind=self.kind.name, as_of=str(day)):
            rows = await self.store.scan(self.kind, RecordFilter(as_of=day))
        logger.debug(
            "Listed {} {} version(s) effective on {}",
            len(rows),
            self.kind.label,
            day,
            kind=self.kind.name,
        )
        return self._ordered(rows, today)

    async def get(self, record_id: int) -> ConfigurationRecord:
        with trace_operation("registry.get", kind=self.kind.name, record_id=record_id):
            row = await self._load(record_id)
        return ConfigurationRecord.from_row(self.kind, row, self.clock())

    async def history(
        self, natural_key: Mapping[str, Any] | None = None
    ) -> list[ConfigurationRecord]:
        """Return every stored version regardless of dates.

        Args:
            natural_key: Restrict to versions matching these natural key
                fields. Any subset of the kind's natural key may be given.

        Returns:
            list[ConfigurationRecord]: Versions in list order.
        """
        match = self._key_filter(natural_key or {}, require_all=False)
        with trace_operation("registry.history", kind=self.kind.name):
            rows = await self.store.scan(self.kind, RecordFilter(match=match))
        return self._ordered(rows, self.clock())

    async def resolve(
        self, natural_key: Mapping[str, Any], on: date | str | None = None
    ) -> ConfigurationRecord:
        """Return the version of one natural key that applies on a day.

        When versions overlap (possible on non-strict kinds) the one with the
        latest effective date wins, then the highest id.

        Raises:
            ValidationError: If a natural key field is missing.
            NotFoundError: If no version applies on that day.
        """
        today = self.clock()
        day = parse_date(on, "on") or today
        match = self._key_filter(natural_key, require_all=True)
        with trace_operation("registry.resolve", kind=self.kind.name, on=str(day)):
            rows = await self.store.scan(
                self.kind, RecordFilter(as_of=day, match=match)
            )
        if not rows:
            msg = f"No {self.kind.label} applies on {day.isoformat()}"
            context = {
                "natural_key": {k: str(v) for k, v in match.items()},
                "on": day.isoformat(),
            }
            raise NotFoundError(msg, context=context)
        chosen = max(rows, key=lambda row: (row[_EFFECTIVE], row["id"]))
        return ConfigurationRecord.from_row(self.kind, chosen, today)

    # Mutations

    async def create(self, payload: Payload) -> ConfigurationRecord:
        """Validate and insert a new version.

        Create is not idempotent: repeating it after an unclear failure may
        insert the version twice on non-strict kinds.

        Raises:
            ValidationError: On missing or malformed fields.
            ConflictError: On a strict kind, if the interval overlaps another
                version of the same natural key.
        """
        with trace_operation("registry.create", kind=self.kind.name) as span:
            row = self._build_row(payload)
            guard = await self._prepare_write(row, exclude_id=None)
            self._stamp_status(row, row[_EXPIRATION])
            stored = await self.store.insert(self.kind, row, guard)
            span.set_attribute("record_id", str(stored["id"]))

        logger.info(
            "Created {} version {}",
            self.kind.label,
            stored["id"],
            kind=self.kind.name,
            record_id=stored["id"],
        )
        return ConfigurationRecord.from_row(self.kind, stored, self.clock())

    async def replace(self, record_id: int, payload: Payload) -> ConfigurationRecord:
        """Overwrite every mutable field of a version.

        Optional fields missing from ``payload`` are cleared. On strict kinds
        the effective date is immutable.

        Raises:
            NotFoundError: If the record does not exist.
            ValidationError: On missing or malformed fields.
            ConflictError: On a strict kind, on overlap with another version.
        """
        with trace_operation(
            "registry.replace", kind=self.kind.name, record_id=record_id
        ):
            current = await self._load(record_id)
            row = self._build_row(payload)
            if self.kind.strict_overlap and row[_EFFECTIVE] != current[_EFFECTIVE]:
                msg = f"effective_date of a {self.kind.label} cannot change"
                raise ValidationError(msg, field=_EFFECTIVE)
            guard = await self._prepare_write(row, exclude_id=record_id)
            self._stamp_status(row, row[_EXPIRATION])
            stored = await self._update(record_id, row, guard)

        logger.info(
            "Replaced {} version {}",
            self.kind.label,
            record_id,
            kind=self.kind.name,
            record_id=record_id,
        )
        return ConfigurationRecord.from_row(self.kind, stored, self.clock())

    async def patch(self, record_id: int, fields: Payload) -> ConfigurationRecord:
        """Change only the supplied allow-listed fields.

        Fields outside the kind's allow-list are dropped. ``expiration_date``
        may be set to None to reopen a version; value fields may not. On
        kinds that persist status, ``status="expired"`` expires the version
        and ``status="active"`` is accepted only while the dates agree.

        Raises:
            ValidationError: If no allow-listed field is supplied or a value
                is malformed.
            NotFoundError: If the record does not exist.
            ConflictError: On a strict kind, if a moved expiration date makes
                the version overlap another.
        """
        recognised = {k: v for k, v in fields.items() if k in self.kind.patchable}
        # A null status asks for no change
        if _STATUS in recognised and recognised[_STATUS] is None:
            del recognised[_STATUS]
        ignored = sorted(set(fields) - self.kind.patchable)
        if ignored:
            logger.warning(
                "Ignoring non-patchable field(s) {} for {}",
                ignored,
                self.kind.label,
                kind=self.kind.name,
                record_id=record_id,
            )
        if not recognised:
            allowed = ", ".join(sorted(self.kind.patchable))
            msg = f"No patchable field supplied; allowed fields: {allowed}"
            context = {"allowed": sorted(self.kind.patchable), "ignored": ignored}
            raise ValidationError(msg, context=context)

        with trace_operation(
            "registry.patch", kind=self.kind.name, record_id=record_id
        ):
            current = await self._load(record_id)
            status = _parse_status(recognised.pop(_STATUS, None))
            changes = self._coerce_patch(recognised)

            merged = {**current, **changes}
            if status is RecordStatus.EXPIRED:
                changes[_EXPIRATION] = merged[_EXPIRATION] = self._expiry_for(merged)
            elif status is RecordStatus.ACTIVE and (
                derive_status(merged[_EXPIRATION], self.clock()) is RecordStatus.EXPIRED
            ):
                msg = "Cannot mark an expired version active; move expiration_date"
                raise ValidationError(msg, field=_STATUS)
            self._validate_row(merged)

            guard = None
            if merged[_EXPIRATION] != current.get(_EXPIRATION):
                guard = await self._prepare_write(merged, exclude_id=record_id)
            self._stamp_status(changes, merged[_EXPIRATION])
            stored = await self._update(record_id, changes, guard)

        logger.info(
            "Patched {} version {} ({})",
            self.kind.label,
            record_id,
            ", ".join(sorted(changes)),
            kind=self.kind.name,
            record_id=record_id,
        )
        return ConfigurationRecord.from_row(self.kind, stored, self.clock())

    async def expire(self, record_id: int) -> ConfigurationRecord:
        """Soft-expire a version by setting its expiration date to today.

        A version that has not started yet is expired on its effective date.
        A version already expired keeps its interval, so repeating Expire
        changes nothing.

        Raises:
            NotFoundError: If the record does not exist.
        """
        with trace_operation(
            "registry.expire", kind=self.kind.name, record_id=record_id
        ):
            current = await self._load(record_id)
            expiration = self._expiry_for(current)
            changes: RecordValues = {_EXPIRATION: expiration}
            self._stamp_status(changes, expiration)
            stored = await self._update(record_id, changes, None)

        logger.info(
            "Expired {} version {} on {}",
            self.kind.label,
            record_id,
            expiration,
            kind=self.kind.name,
            record_id=record_id,
        )
        return ConfigurationRecord.from_row(self.kind, stored, self.clock())

    async def delete(self, record_id: int) -> int:
        """Hard-delete a version and return its id.

        Raises:
            NotFoundError: If the record does not exist.
        """
        with trace_operation(
            "registry.delete", kind=self.kind.name, record_id=record_id
        ):
            if not await self.store.delete(self.kind, record_id):
                raise self._not_found(record_id)

        logger.info(
            "Deleted {} version {}",
            self.kind.label,
            record_id,
            kind=self.kind.name,
            record_id=record_id,
        )
        return record_id

    # Helpers

    def _not_found(self, record_id: int) -> NotFoundError:
        msg = f"{self.kind.label} with id {record_id} not found"
        return NotFoundError(msg, record_id=record_id, context={"kind": self.kind.name})

    async def _load(self, record_id: int) -> RecordValues:
        row = await self.store.get(self.kind, record_id)
        if row is None:
            raise self._not_found(record_id)
        return row

    async def _update(
        self, record_id: int, values: RecordValues, guard: WriteGuard | None
    ) -> RecordValues:
        stored = await self.store.update(self.kind, record_id, values, guard)
        if stored is None:
            raise self._not_found(record_id)
        return stored

    def _coerce(self, name: str, value: object) -> Any:
        if name in (_EFFECTIVE, _EXPIRATION):
            return parse_date(value, name)
        spec = self.kind.numeric.get(name)
        if spec is not None:
            return _parse_decimal(value, name, spec)
        text = str(value).strip()
        limit = self.kind.max_lengths.get(name)
        if limit is not None and len(text) > limit:
            msg = f"{name} allows at most {limit} characters"
            raise ValidationError(msg, field=name)
        allowed = self.kind.choices.get(name)
        if allowed is not None and text not in allowed:
            msg = f"{name} must be one of {', '.join(sorted(allowed))}"
            raise ValidationError(msg, field=name)
        return text

    def _build_row(self, payload: Payload) -> RecordValues:
        """Turn a full payload into a validated row; unknown keys are ignored."""
        row: RecordValues = {}
        for name in (*self.kind.natural_key, *self.kind.required, _EFFECTIVE):
            value = payload.get(name)
            if _is_blank(value):
                msg = f"Missing required field: {name}"
                raise ValidationError(msg, field=name)
            row[name] = self._coerce(name, value)
        for name in (*self.kind.optional, _EXPIRATION):
            value = payload.get(name)
            row[name] = None if _is_blank(value) else self._coerce(name, value)
        self._validate_row(row)
        return row

    def _coerce_patch(self, fields: Payload) -> RecordValues:
        changes: RecordValues = {}
        for name, value in fields.items():
            if name == _EXPIRATION:
                changes[name] = parse_date(value, name)
            elif name in self.kind.optional and _is_blank(value):
                changes[name] = None
            elif _is_blank(value):
                msg = f"{name} cannot be empty"
                raise ValidationError(msg, field=name)
            else:
                changes[name] = self._coerce(name, value)
        return changes

    def _validate_row(self, row: RecordValues) -> None:
        for lower, upper in self.kind.ranges:
            low, high = row.get(lower), row.get(upper)
            if low is not None and high is not None and low > high:
                msg = f"{upper} must be greater than or equal to {lower}"
                raise ValidationError(msg, field=upper)
        expiration = row.get(_EXPIRATION)
        if expiration is not None and expiration < row[_EFFECTIVE]:
            msg = "expiration_date must be on or after effective_date"
            raise ValidationError(msg, field=_EXPIRATION)

    def _key_filter(
        self, natural_key: Mapping[str, Any], *, require_all: bool
    ) -> dict[str, Any]:
        unknown = sorted(set(natural_key) - set(self.kind.natural_key))
        if unknown:
            names = ", ".join(unknown)
            msg = f"Not natural key field(s) of {self.kind.label}: {names}"
            raise ValidationError(msg, field=unknown[0])
        match: dict[str, Any] = {}
        for name in self.kind.natural_key:
            value = natural_key.get(name)
            if _is_blank(value):
                if require_all:
                    msg = f"Missing natural key field: {name}"
                    raise ValidationError(msg, field=name)
                continue
            match[name] = self._coerce(name, value)
        return match

    def _expiry_for(self, row: RecordValues) -> date:
        """Expiration date that retires ``row`` as of today."""
        today = self.clock()
        expiration = row.get(_EXPIRATION)
        if expiration is not None and expiration <= today:
            return expiration
        return max(today, row[_EFFECTIVE])

    def _stamp_status(self, values: RecordValues, expiration: date | None) -> None:
        """Refresh the persisted status cache on kinds that store one."""
        if self.kind.persists_status:
            values[_STATUS] = derive_status(expiration, self.clock()).value

    async def _prepare_write(
        self, row: RecordValues, exclude_id: int | None
    ) -> WriteGuard | None:
        """Return a guard on strict kinds; on others just report overlaps."""
        natural_key = {name: row[name] for name in self.kind.natural_key}
        interval = Interval(row[_EFFECTIVE], row.get(_EXPIRATION))
        if self.kind.strict_overlap:
            return WriteGuard(natural_key, interval, exclude_id)

        siblings = await self.store.scan(self.kind, RecordFilter(match=natural_key))
        overlapping = find_overlaps(interval, siblings, exclude_id)
        if overlapping:
            logger.warning(
                "{} version overlaps existing version(s) {}",
                self.kind.label,
                [r["id"] for r in overlapping],
                kind=self.kind.name,
                record_id=exclude_id,
            )
        return None

    def _ordered(
        self, rows: list[RecordValues], today: date
    ) -> list[ConfigurationRecord]:
        """Sort by the kind's sort fields, then effective date, then id.

        Missing values sort first; equal values are never compared with None.
        """

        def sort_key(row: RecordValues) -> tuple[Any, ...]:
            fields = tuple(
                (row.get(name) is not None, row.get(name))
                for name in self.kind.sort_key
            )
            return (*fields, row[_EFFECTIVE], row["id"])

        return [
            ConfigurationRecord.from_row(self.kind, row, today)
            for row in sorted(rows, key=sort_key)
        ]
