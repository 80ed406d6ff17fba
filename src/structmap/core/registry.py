"""Registry memoizing mapping functions per (source, target) pair."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from ..exceptions import (
    MappingGenerationError,
    MappingNotFoundError,
    RecursionLimitExceeded,
)
from .compiled import MappingFunction, RegisteredMapping
from .generator import MappingGenerator
from .policy import PipelinePolicy

logger = logging.getLogger(__name__)

PairKey = tuple[type, type]


class MappingRegistry:
    """
    Cache of mapping functions keyed by (source type, target type).

    Reads of populated entries take no lock. Inserting a generated mapping
    takes a lock around the check-then-insert step only; generation itself
    runs unlocked, so concurrent first requests for the same pair may both
    generate, and the first stored result is the one every caller gets.
    """

    def __init__(self, generator: MappingGenerator, policy: PipelinePolicy):
        self._generator = generator
        self._policy = policy
        self._entries: dict[PairKey, MappingFunction] = {}
        self._registered: set[PairKey] = set()
        self._lock = threading.Lock()
        self._logger = logger.getChild(self.__class__.__name__)

    @property
    def policy(self) -> PipelinePolicy:
        return self._policy

    def get(self, source_type: type, target_type: type) -> MappingFunction | None:
        """
        Look up a cached mapping without generating.

        Hand-registered mappings also serve subclasses of their source type.
        """
        mapping = self._entries.get((source_type, target_type))
        if mapping is not None:
            return mapping

        for base in source_type.__mro__[1:]:
            key = (base, target_type)
            if key in self._registered:
                return self._entries.get(key)
        return None

    def get_or_generate(
        self, source_type: type, target_type: type, depth: int = 0
    ) -> MappingFunction:
        """
        Return the mapping for a pair, generating and caching it when missing.

        Raises:
            MappingNotFoundError: If the pair is unknown and on-demand
                generation is disabled
            RecursionLimitExceeded: If `depth` is beyond the policy limit
            MappingGenerationError: Any other generation failure
        """
        mapping = self.get(source_type, target_type)
        if mapping is not None:
            self._logger.debug(
                f"Cache hit for {source_type.__name__} -> {target_type.__name__}"
            )
            return mapping

        if not self._policy.generate_if_not_found:
            raise MappingNotFoundError(source_type, target_type)

        if self._policy.exceeds_depth(depth):
            raise RecursionLimitExceeded(
                source_type, target_type, depth, self._policy.max_recursion_depth
            )

        try:
            mapping = self._generator.generate(source_type, target_type, self, depth)
        except MappingGenerationError as e:
            log = self._logger.error if depth == 0 else self._logger.debug
            log(
                f"Generation of {source_type.__name__} -> {target_type.__name__} "
                f"failed at depth {depth}: {e}"
            )
            raise

        return self._store((source_type, target_type), mapping)

    def register(
        self,
        source_type: type,
        target_type: type,
        function: Callable[[Any], Any],
    ) -> RegisteredMapping:
        """
        Register a hand-written mapping function for a pair.

        Replaces any cached or registered mapping for that exact pair.
        """
        key = (source_type, target_type)
        mapping = RegisteredMapping(source_type, target_type, function)
        with self._lock:
            if key in self._entries:
                self._logger.warning(
                    f"Overwriting mapping for {source_type.__name__} -> "
                    f"{target_type.__name__}"
                )
            self._entries[key] = mapping
            self._registered.add(key)
        self._logger.info(
            f"Registered mapping '{mapping.describe()[0][1]}' for "
            f"{source_type.__name__} -> {target_type.__name__}"
        )
        return mapping

    def registered_items(self) -> list[RegisteredMapping]:
        """Hand-registered mappings, in registration order."""
        with self._lock:
            entries = list(self._entries.items())
        return [
            mapping
            for key, mapping in entries
            if key in self._registered and isinstance(mapping, RegisteredMapping)
        ]

    def _store(self, key: PairKey, mapping: MappingFunction) -> MappingFunction:
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                return existing
            self._entries[key] = mapping

        self._logger.info(
            f"Cached generated mapping {key[0].__name__} -> {key[1].__name__}"
        )
        return mapping

    def reset(self) -> None:
        """Clear all entries, generated and registered."""
        with self._lock:
            self._entries.clear()
            self._registered.clear()
        self._logger.info("Cleared all cached mappings")

    def pairs(self) -> list[PairKey]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: PairKey) -> bool:
        return pair in self._entries
