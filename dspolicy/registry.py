"""
Delivery-service policy registry for dspolicy.

Holds the current config generation. A new generation is built off to the
side and published by swapping one dict reference, so request handlers
never see a half-built set of policies.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from dspolicy.core.availability import AvailabilityState
from dspolicy.core.config import PolicyConfig
from dspolicy.core.policy import DeliveryServicePolicy
from dspolicy.core.token import TokenContext
from dspolicy.observability import metrics
from dspolicy.observability.logging_setup import get_logger

log = get_logger("dspolicy.registry")


class PolicyRegistry:
    """Current delivery-service policies, keyed by delivery-service id"""

    def __init__(self, token_context: Optional[TokenContext] = None):
        self.token_context = token_context or TokenContext()
        self._policies: Dict[str, DeliveryServicePolicy] = {}
        self._generation = 0
        self._publish_lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, ds_id: str) -> Optional[DeliveryServicePolicy]:
        return self._policies.get(ds_id)

    def ids(self) -> List[str]:
        return sorted(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def publish(self, document: Mapping[str, Any]) -> List[str]:
        """
        Build and publish a new generation from a router config document.

        Documents that fail validation are logged and left out; the rest of
        the generation is still published. Availability state is carried
        over for delivery services present in both generations.

        Args:
            document: {"deliveryServices": {id: delivery-service document}}

        Returns:
            ids of the delivery services that were rejected
        """
        services = document.get("deliveryServices") or {}
        rejected: List[str] = []

        with self._publish_lock:
            current = self._policies
            policies: Dict[str, DeliveryServicePolicy] = {}
            for ds_id, ds_doc in services.items():
                try:
                    config = PolicyConfig.from_document(ds_id, ds_doc)
                except ValidationError as e:
                    rejected.append(ds_id)
                    metrics.config_rejected.inc()
                    log.error(f"DeliveryService '{ds_id}' rejected: {e.error_count()} error(s)\n{e}")
                    continue

                previous = current.get(ds_id)
                availability = previous.availability if previous else AvailabilityState()
                policies[ds_id] = DeliveryServicePolicy(config, self.token_context, availability)

            self._policies = policies
            self._generation += 1

        metrics.policies_published.set(len(policies))
        metrics.config_generation.set(self._generation)
        log.info(f"published config generation:{self._generation} deliveryservices:{len(policies)} rejected:{len(rejected)}")
        return rejected

    def load_file(self, path: Union[str, Path]) -> List[str]:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
        return self.publish(document)

    def set_state(self, ds_id: str, state: Optional[Mapping[str, Any]]) -> bool:
        """
        Route a pushed availability state to a delivery service.

        Returns:
            False when the delivery service is unknown
        """
        policy = self.get(ds_id)
        if policy is None:
            log.warning(f"state push for unknown deliveryservice:{ds_id}")
            return False
        policy.set_state(state)
        return True

    def set_states(self, states: Mapping[str, Mapping[str, Any]]) -> List[str]:
        """Apply a {id: state} batch; returns the unknown ids"""
        return [ds_id for ds_id, state in states.items() if not self.set_state(ds_id, state)]
