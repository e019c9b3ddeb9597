"""HEAD-probe validation deciding whether a candidate is a fetchable archive."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Mapping, Union

import httpx
import structlog

from ..config import KitwatchConfig
from .candidate import Candidate, extract_extension


@dataclass(frozen=True, slots=True)
class ProbeMetadata:
    """Headers-only view of a probe response."""

    status_code: int
    content_length: int | None
    mime_type: str | None
    headers: Dict[str, str]


@dataclass(frozen=True, slots=True)
class ProbeError:
    """The probe produced no metadata."""

    reason: str


ProbeResult = Union[ProbeMetadata, ProbeError]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    candidate: Candidate
    status_code: int | None = None
    content_length: int | None = None
    mime_type: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    verdict: bool = False
    failed_check: str | None = None
    error: str | None = None


def parse_mime_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime or None


def parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


class Prober:
    """Issue a single HEAD request and report headers without reading the body."""

    def __init__(self, client: httpx.Client, timeout: float) -> None:
        self._client = client
        self.timeout = timeout

    def probe(self, url: str) -> ProbeResult:
        try:
            with self._client.stream("HEAD", url, timeout=self.timeout) as response:
                headers = dict(response.headers)
                return ProbeMetadata(
                    status_code=response.status_code,
                    content_length=parse_content_length(response.headers.get("content-length")),
                    mime_type=parse_mime_type(response.headers.get("content-type")),
                    headers=headers,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return ProbeError(reason=f"{type(exc).__name__}: {exc}")


@dataclass(frozen=True, slots=True)
class Predicate:
    """One named check of the validation chain."""

    name: str
    check: Callable[[ValidationResult], bool]
    needs_probe: bool = True

    def __call__(self, result: ValidationResult) -> bool:
        return self.check(result)


def valid_extension(allowed: frozenset[str]) -> Callable[[ValidationResult], bool]:
    def check(result: ValidationResult) -> bool:
        return extract_extension(result.candidate.url) in allowed

    return check


def reachable(result: ValidationResult) -> bool:
    return result.status_code is not None and 200 <= result.status_code < 300


def valid_mime_type(allowed: frozenset[str]) -> Callable[[ValidationResult], bool]:
    def check(result: ValidationResult) -> bool:
        return result.mime_type in allowed

    return check


def valid_content_length(result: ValidationResult) -> bool:
    return result.content_length is not None and result.content_length > 0


def build_predicates(config: KitwatchConfig) -> list[Predicate]:
    """Return the chain in evaluation order, cheapest first."""

    return [
        Predicate(
            "valid_extension",
            valid_extension(frozenset(config.valid_extensions)),
            needs_probe=False,
        ),
        Predicate("reachable", reachable),
        Predicate("valid_mime_type", valid_mime_type(frozenset(config.valid_mime_types))),
        Predicate("valid_content_length", valid_content_length),
    ]


class Validator:
    """Evaluate the predicate chain for a candidate, probing at most once."""

    def __init__(
        self,
        config: KitwatchConfig,
        prober: Prober,
        predicates: list[Predicate] | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.prober = prober
        self.predicates = predicates if predicates is not None else build_predicates(config)
        self.logger = logger or structlog.get_logger("kitwatch.validator")

    def validate(self, candidate: Candidate) -> ValidationResult:
        result = ValidationResult(candidate=candidate)
        probed = False
        for predicate in self.predicates:
            if predicate.needs_probe and not probed:
                result = self._apply_probe(result)
                probed = True
            if not predicate(result):
                self.logger.debug(
                    "validation_failed",
                    url=candidate.url,
                    check=predicate.name,
                    status=result.status_code,
                    mime_type=result.mime_type,
                    content_length=result.content_length,
                )
                return replace(result, verdict=False, failed_check=predicate.name)
        return replace(result, verdict=True)

    def _apply_probe(self, result: ValidationResult) -> ValidationResult:
        probe = self.prober.probe(result.candidate.url)
        if isinstance(probe, ProbeError):
            self.logger.info("probe_failed", url=result.candidate.url, error=probe.reason)
            return replace(result, error=probe.reason)
        return replace(
            result,
            status_code=probe.status_code,
            content_length=probe.content_length,
            mime_type=probe.mime_type,
            headers=probe.headers,
        )


__all__ = [
    "Predicate",
    "ProbeError",
    "ProbeMetadata",
    "ProbeResult",
    "Prober",
    "ValidationResult",
    "Validator",
    "build_predicates",
    "parse_content_length",
    "parse_mime_type",
    "reachable",
    "valid_content_length",
    "valid_extension",
    "valid_mime_type",
]
